from eth_account.messages import encode_defunct
from eth_utils import keccak, function_signature_to_4byte_selector

from ..types.common import ValidationError

def keccak256(data: bytes) -> bytes:
    """Returns Keccak-256 hash of bytes."""
    return keccak(data)

def eth_signed_message_hash(digest: bytes) -> bytes:
    """
    Applies the EIP-191 personal-message prefix to a 32-byte digest.

    keccak256("\\x19Ethereum Signed Message:\\n32" || digest)
    """
    if len(digest) != 32:
        raise ValidationError(f"digest must be 32 bytes, got {len(digest)}")
    message = encode_defunct(primitive=digest)
    return keccak256(b"\x19" + message.version + message.header + message.body)

def selector(signature: str) -> bytes:
    """Returns the 4-byte selector for a canonical function or error signature."""
    return function_signature_to_4byte_selector(signature)
