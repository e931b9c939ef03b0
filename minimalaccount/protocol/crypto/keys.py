from ecdsa import SigningKey, VerifyingKey, SECP256k1 # type: ignore
from ecdsa.util import sigencode_string_canonize, sigdecode_string # type: ignore
import hashlib
import os
from typing import List, Optional

SECP256K1_N = SECP256k1.order
SECP256K1_HALF_N = SECP256K1_N // 2

def generate_private_key() -> bytes:
    """Generates a random 32-byte private key."""
    return os.urandom(32)

def public_key_from_private(priv_bytes: bytes) -> bytes:
    """Returns uncompressed 64-byte (x || y) public key from private key."""
    sk = SigningKey.from_string(priv_bytes, curve=SECP256k1)
    return sk.get_verifying_key().to_string()

def _recovery_candidates(message_hash: bytes, rs: bytes) -> List[VerifyingKey]:
    # Index 0 is the even-y candidate, index 1 the odd-y one.
    return VerifyingKey.from_public_key_recovery_with_digest(
        rs, message_hash, SECP256k1, hashfunc=hashlib.sha256, sigdecode=sigdecode_string
    )

def sign(message_hash: bytes, priv_bytes: bytes) -> bytes:
    """Signs a 32-byte hash. Returns 65-byte (r, s, v) signature with low s and v in {27, 28}."""
    sk = SigningKey.from_string(priv_bytes, curve=SECP256k1)
    rs = sk.sign_digest_deterministic(message_hash, hashfunc=hashlib.sha256, sigencode=sigencode_string_canonize)
    pub = sk.get_verifying_key().to_string()
    for recovery_id, candidate in enumerate(_recovery_candidates(message_hash, rs)):
        if candidate.to_string() == pub:
            return rs + bytes([27 + recovery_id])
    raise ValueError("Unable to determine recovery id")

def recover(message_hash: bytes, signature: bytes) -> Optional[bytes]:
    """
    Recovers the 64-byte public key that produced `signature` over `message_hash`.

    Returns None for anything that does not recover: wrong length, v outside
    {27, 28}, r or s out of range, high s, or a point that is not on the curve.
    """
    if len(message_hash) != 32 or len(signature) != 65:
        return None
    r = int.from_bytes(signature[:32], 'big')
    s = int.from_bytes(signature[32:64], 'big')
    v = signature[64]
    if v not in (27, 28):
        return None
    if not (0 < r < SECP256K1_N) or not (0 < s <= SECP256K1_HALF_N):
        return None
    try:
        candidates = _recovery_candidates(message_hash, signature[:64])
        return candidates[v - 27].to_string()
    except Exception:
        return None

def verify(message_hash: bytes, signature: bytes, pub_bytes: bytes) -> bool:
    """Verifies a 65-byte recoverable signature against a known public key."""
    recovered = recover(message_hash, signature)
    return recovered is not None and recovered == pub_bytes
