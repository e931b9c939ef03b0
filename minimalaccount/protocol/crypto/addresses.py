from eth_utils import is_address, to_checksum_address
from typing import Any

from .hash import keccak256
from .keys import public_key_from_private
from ..types.common import ValidationError

ADDRESS_LENGTH = 20
ZERO_ADDRESS = "0x" + "00" * ADDRESS_LENGTH

def address_from_pubkey(pub_bytes: bytes) -> str:
    """Creates checksummed address from a 64-byte uncompressed public key."""
    if len(pub_bytes) != 64:
        raise ValidationError(f"public key must be 64 bytes, got {len(pub_bytes)}")
    return to_checksum_address("0x" + keccak256(pub_bytes)[-ADDRESS_LENGTH:].hex())

def address_from_private(priv_bytes: bytes) -> str:
    return address_from_pubkey(public_key_from_private(priv_bytes))

def is_valid_address(addr: Any) -> bool:
    return isinstance(addr, str) and is_address(addr)

def normalize_address(addr: Any) -> str:
    """Returns the checksummed form of `addr`, raising ValidationError if it is not an address."""
    if not is_valid_address(addr):
        raise ValidationError(f"Invalid address: {addr!r}")
    return to_checksum_address(addr)

def is_zero_address(addr: str) -> bool:
    return normalize_address(addr) == ZERO_ADDRESS
