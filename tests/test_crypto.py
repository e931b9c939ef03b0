import pytest
from eth_account import Account as EthAccount
from eth_account.messages import encode_defunct

from minimalaccount.account.verifier import recover_signer
from minimalaccount.protocol.crypto.addresses import (
    ZERO_ADDRESS,
    address_from_private,
    is_valid_address,
    is_zero_address,
    normalize_address,
)
from minimalaccount.protocol.crypto.hash import eth_signed_message_hash, keccak256, selector
from minimalaccount.protocol.crypto.keys import (
    SECP256K1_N,
    generate_private_key,
    public_key_from_private,
    recover,
    sign,
    verify,
)
from minimalaccount.protocol.types.common import ValidationError

ANVIL_KEY = bytes.fromhex("ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80")
ANVIL_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
DIGEST = keccak256(b"user operation")


def test_address_derivation_matches_known_account():
    assert address_from_private(ANVIL_KEY) == ANVIL_ADDRESS
    assert EthAccount.from_key(ANVIL_KEY).address == ANVIL_ADDRESS


def test_address_normalization():
    assert normalize_address(ANVIL_ADDRESS.lower()) == ANVIL_ADDRESS
    assert is_valid_address(ANVIL_ADDRESS)
    assert not is_valid_address("0x1234")
    assert not is_valid_address(None)
    assert is_zero_address(ZERO_ADDRESS)
    assert not is_zero_address(ANVIL_ADDRESS)
    with pytest.raises(ValidationError):
        normalize_address("not an address")


def test_personal_message_prefix():
    expected = keccak256(b"\x19Ethereum Signed Message:\n32" + DIGEST)
    assert eth_signed_message_hash(DIGEST) == expected
    with pytest.raises(ValidationError):
        eth_signed_message_hash(b"\x00" * 31)


def test_selector():
    # transfer(address,uint256)
    assert selector("transfer(address,uint256)").hex() == "a9059cbb"


def test_sign_and_recover_round_trip():
    priv = generate_private_key()
    pub = public_key_from_private(priv)
    message_hash = eth_signed_message_hash(DIGEST)

    sig = sign(message_hash, priv)
    assert len(sig) == 65
    assert sig[64] in (27, 28)
    assert int.from_bytes(sig[32:64], "big") <= SECP256K1_N // 2

    assert recover(message_hash, sig) == pub
    assert verify(message_hash, sig, pub)
    assert not verify(keccak256(b"other"), sig, pub)


def test_signature_from_wallet_recovers():
    """A personal_sign signature made by an ordinary wallet library recovers to its key."""
    signed = EthAccount.sign_message(encode_defunct(primitive=DIGEST), private_key=ANVIL_KEY)
    assert recover_signer(DIGEST, bytes(signed.signature)) == ANVIL_ADDRESS


def test_own_signature_verifies_in_wallet_library():
    sig = sign(eth_signed_message_hash(DIGEST), ANVIL_KEY)
    assert EthAccount.recover_message(encode_defunct(primitive=DIGEST), signature=sig) == ANVIL_ADDRESS


def test_both_recovery_ids_are_produced():
    seen = set()
    for i in range(16):
        seen.add(sign(keccak256(bytes([i])), ANVIL_KEY)[64])
    assert seen == {27, 28}


def _valid_sig():
    return sign(eth_signed_message_hash(DIGEST), ANVIL_KEY)


@pytest.mark.parametrize("mutate", [
    lambda sig: b"",
    lambda sig: sig[:64],
    lambda sig: sig + b"\x00",
    lambda sig: sig[:64] + b"\x00",
    lambda sig: sig[:64] + b"\x1d",
    lambda sig: b"\x00" * 32 + sig[32:],
    lambda sig: sig[:32] + b"\x00" * 32 + sig[64:],
    lambda sig: SECP256K1_N.to_bytes(32, "big") + sig[32:],
    lambda sig: b"\xff" * 65,
])
def test_malformed_signatures_do_not_recover(mutate):
    assert recover_signer(DIGEST, mutate(_valid_sig())) is None


def test_high_s_twin_is_rejected():
    sig = _valid_sig()
    s = int.from_bytes(sig[32:64], "big")
    twin = sig[:32] + (SECP256K1_N - s).to_bytes(32, "big") + bytes([55 - sig[64]])
    assert recover_signer(DIGEST, twin) is None


def test_tampered_signature_recovers_someone_else():
    sig = bytearray(_valid_sig())
    sig[64] = 55 - sig[64]
    assert recover_signer(DIGEST, bytes(sig)) != ANVIL_ADDRESS
