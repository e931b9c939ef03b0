# MIT License
# Copyright (c) 2025 Hashborn

"""
Simplified ERC-4337 entry point.

Drives accounts through the validate-then-execute pipeline:

1. for every operation, compute its digest and the prefund it requires,
   and ask the account to validate it and pay what its deposit is missing;
2. for every validated operation, forward its callData to the account and
   record the outcome in a `UserOperationEvent`;
3. pay everything collected to the beneficiary.

A failed validation, or an operation whose sender has no code, aborts the
whole batch with `FailedOp`. A failed execution does not: the operation is
reported with `success=False`.

Not modelled: nonces, paymasters, gas refunds, aggregators.
"""

import logging
from eth_abi.exceptions import DecodingError # type: ignore
from typing import List

from ..blockchain.core.calls import CallContext, Contract
from ..blockchain.core.events import DEPOSITED, USER_OPERATION_EVENT
from ..blockchain.observability.metrics import user_ops_total
from ..protocol.crypto.addresses import normalize_address
from ..protocol.crypto.hash import selector
from ..protocol.types.common import Revert, ValidationOutcome
from ..protocol.types.user_op import PackedUserOperation
from . import abi
from .errors import FailedOp

logger = logging.getLogger(__name__)

DEPOSIT_SLOT_PREFIX = "deposit:"


def required_prefund(op: PackedUserOperation) -> int:
    """Maximum the operation can cost: every gas limit at the maximum fee."""
    return (op.verification_gas_limit + op.call_gas_limit + op.pre_verification_gas) * op.max_fee_per_gas


class EntryPoint(Contract):
    def __init__(self, address: str, chain_id: int):
        super().__init__(address)
        self.chain_id = chain_id
        self._handlers = {
            selector(abi.HANDLE_OPS): self._call_handle_ops,
            selector(abi.DEPOSIT_TO): self._call_deposit_to,
            selector(abi.BALANCE_OF): self._call_balance_of,
            selector(abi.GET_USER_OP_HASH): self._call_get_user_op_hash,
        }

    # --- Deposits ---
    def balance_of(self, state, account: str) -> int:
        raw = state.get_storage(self.address, DEPOSIT_SLOT_PREFIX + normalize_address(account))
        return int(raw) if raw else 0

    def _set_deposit(self, ctx: CallContext, account: str, amount: int):
        ctx.state.set_storage(self.address, DEPOSIT_SLOT_PREFIX + normalize_address(account), str(amount))

    def deposit_to(self, ctx: CallContext, account: str, amount: int):
        total = self.balance_of(ctx.state, account) + amount
        self._set_deposit(ctx, account, total)
        ctx.emit(DEPOSITED, account=normalize_address(account), total_deposit=total)

    def get_user_op_hash(self, op: PackedUserOperation) -> bytes:
        return op.hash(self.address, self.chain_id)

    # --- Bundle processing ---
    def handle_ops(self, ctx: CallContext, ops: List[PackedUserOperation], beneficiary: str):
        validated = []
        collected = 0

        for index, op in enumerate(ops):
            if op.paymaster_and_data:
                raise FailedOp(index, "AA30 paymaster not supported")

            user_op_hash = self.get_user_op_hash(op)
            prefund = required_prefund(op)
            missing = max(0, prefund - self.balance_of(ctx.state, op.sender))

            if ctx.state.get_code(op.sender) is None:
                raise FailedOp(index, "AA20 account not deployed")

            result = ctx.call(op.sender, data=abi.encode_validate_user_op(op, user_op_hash, missing))
            if not result.success:
                raise FailedOp(index, "AA23 reverted")
            try:
                validation_data = abi.decode_uint(result.return_data)
            except DecodingError:
                raise FailedOp(index, "AA23 reverted")
            if validation_data != ValidationOutcome.SUCCESS:
                raise FailedOp(index, "AA24 signature error")

            deposit = self.balance_of(ctx.state, op.sender)
            if deposit < prefund:
                raise FailedOp(index, "AA21 didn't pay prefund")
            self._set_deposit(ctx, op.sender, deposit - prefund)
            collected += prefund
            validated.append((op, user_op_hash, prefund))

        for op, user_op_hash, prefund in validated:
            success = True
            if op.call_data:
                success = ctx.call(op.sender, data=op.call_data).success
            user_ops_total.labels(status="success" if success else "failed").inc()
            ctx.emit(
                USER_OPERATION_EVENT,
                user_op_hash="0x" + user_op_hash.hex(),
                sender=op.sender,
                nonce=op.nonce,
                success=success,
                actual_gas_cost=prefund,
            )
            logger.debug(f"User op {user_op_hash.hex()[:16]} from {op.sender}: success={success}")

        if collected:
            result = ctx.call(beneficiary, value=collected)
            if not result.success:
                raise Revert(b"", "AA91 failed send to beneficiary")
        logger.info(f"Handled {len(validated)} user ops, {collected} paid to {beneficiary}")

    # --- Calldata dispatch ---
    def handle_call(self, ctx: CallContext, data: bytes) -> bytes:
        if not data:
            # Plain value credits the sender's deposit
            self.deposit_to(ctx, ctx.sender, ctx.value)
            return b""
        handler = self._handlers.get(data[:4])
        if handler is None:
            raise Revert(b"", f"unknown selector 0x{data[:4].hex()}")
        return handler(ctx, data)

    def _call_handle_ops(self, ctx: CallContext, data: bytes) -> bytes:
        op_tuples, beneficiary = abi.decode_calldata(abi.HANDLE_OPS_ARGS, data)
        ops = [PackedUserOperation.from_abi_tuple(t) for t in op_tuples]
        self.handle_ops(ctx, ops, beneficiary)
        return b""

    def _call_deposit_to(self, ctx: CallContext, data: bytes) -> bytes:
        (account,) = abi.decode_calldata(abi.DEPOSIT_TO_ARGS, data)
        self.deposit_to(ctx, account, ctx.value)
        return b""

    def _call_balance_of(self, ctx: CallContext, data: bytes) -> bytes:
        (account,) = abi.decode_calldata(abi.BALANCE_OF_ARGS, data)
        return abi.encode_uint(self.balance_of(ctx.state, account))

    def _call_get_user_op_hash(self, ctx: CallContext, data: bytes) -> bytes:
        (op_tuple,) = abi.decode_calldata(abi.GET_USER_OP_HASH_ARGS, data)
        return abi.encode_bytes32(self.get_user_op_hash(PackedUserOperation.from_abi_tuple(op_tuple)))
