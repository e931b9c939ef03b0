"""
Owner signature verification for user operations.

The request digest is wrapped in the EIP-191 personal-message prefix before
the signer is recovered, so the owner signs with an ordinary
`personal_sign` style wallet. A signature that does not recover at all and
a signature from someone other than the owner both produce
`ValidationOutcome.FAILURE`; the two cases are not told apart.
"""
import logging
from typing import Optional

from ..protocol.crypto.addresses import address_from_pubkey
from ..protocol.crypto.hash import eth_signed_message_hash
from ..protocol.crypto.keys import recover
from ..protocol.types.common import ValidationOutcome
from ..protocol.types.user_op import PackedUserOperation

logger = logging.getLogger(__name__)


def recover_signer(user_op_hash: bytes, signature: bytes) -> Optional[str]:
    """Address that signed the prefixed digest, or None if the signature does not recover."""
    pub = recover(eth_signed_message_hash(user_op_hash), bytes(signature))
    if pub is None:
        return None
    return address_from_pubkey(pub)


def validate_signature(op: PackedUserOperation, user_op_hash: bytes, owner: str) -> ValidationOutcome:
    signer = recover_signer(user_op_hash, op.signature)
    if signer is not None and signer == owner:
        return ValidationOutcome.SUCCESS
    logger.debug(f"Signature for {op.sender} does not recover to the owner")
    return ValidationOutcome.FAILURE
