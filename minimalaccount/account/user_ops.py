"""Helpers for producing signed user operations off-chain."""
from typing import Optional

from ..protocol.config.params import CURRENT_NETWORK, NetworkConfig
from ..protocol.crypto.hash import eth_signed_message_hash
from ..protocol.crypto.keys import sign
from ..protocol.types.user_op import PackedUserOperation, pack_uints


def sign_user_op(op: PackedUserOperation, priv_key_bytes: bytes, entry_point: str, chain_id: int) -> PackedUserOperation:
    """Returns a copy of `op` carrying the owner's personal-message signature over its digest."""
    user_op_hash = op.hash(entry_point, chain_id)
    return op.with_signature(sign(eth_signed_message_hash(user_op_hash), priv_key_bytes))


def generate_signed_user_op(call_data: bytes, account: str, priv_key_bytes: bytes,
                            config: Optional[NetworkConfig] = None, nonce: int = 0) -> PackedUserOperation:
    """Builds an operation with the network's default gas settings and signs it."""
    config = config or CURRENT_NETWORK
    op = PackedUserOperation(
        sender=account,
        nonce=nonce,
        call_data=call_data,
        account_gas_limits=pack_uints(config.default_verification_gas_limit, config.default_call_gas_limit),
        pre_verification_gas=config.default_pre_verification_gas,
        gas_fees=pack_uints(config.default_max_priority_fee_per_gas, config.default_max_fee_per_gas),
    )
    return sign_user_op(op, priv_key_bytes, config.entry_point, config.chain_id)
