# MIT License
# Copyright (c) 2025 Hashborn

"""
Minimal smart account.

A single-owner account driven by one privileged caller, the entry point:

- `validate_user_op` checks the owner's signature over the request digest
  and, when it is valid, pays the entry point what the account owes for
  processing the operation;
- `execute` forwards an arbitrary call, aborting with the callee's raw
  revert bytes if the call fails;
- `execute_by_owner` is the same forwarding entry point, open to the owner
  as well, for manual use;
- `transfer_ownership` hands the account to a new owner.

Storage slots: `owner` and `entry_point`. The entry point is written once
on deploy and never again.
"""

import logging
from typing import Optional

from ..blockchain.core.calls import CallContext, Contract
from ..blockchain.core.events import OWNERSHIP_TRANSFERRED, PREFUND_PAID, CALL_FORWARDED
from ..blockchain.core.state import WorldState
from ..blockchain.observability.metrics import (
    validations_total,
    prefund_paid_total,
    prefund_failures_total,
    forwarded_calls_total,
    ownership_transfers_total,
)
from ..protocol.config.params import DEFAULT_PREFUND_GAS_LIMIT, NetworkConfig
from ..protocol.crypto.addresses import is_valid_address, is_zero_address, normalize_address
from ..protocol.crypto.hash import selector
from ..protocol.types.common import Revert, ValidationError, ValidationOutcome
from ..protocol.types.user_op import PackedUserOperation
from . import abi
from .errors import ForwardedCallFailed, InvalidNewOwner, OwnableUnauthorizedAccount, PrefundTransferFailed
from .gate import require_from_privileged_caller, require_from_privileged_caller_or_owner
from .verifier import validate_signature

logger = logging.getLogger(__name__)

OWNER_SLOT = "owner"
ENTRY_POINT_SLOT = "entry_point"


class MinimalAccount(Contract):
    def __init__(self, address: str, entry_point: str, owner: str,
                 prefund_gas_limit: Optional[int] = DEFAULT_PREFUND_GAS_LIMIT):
        super().__init__(address)
        self._initial_entry_point = normalize_address(entry_point)
        self._initial_owner = normalize_address(owner)
        self.prefund_gas_limit = prefund_gas_limit
        self._handlers = {
            selector(abi.VALIDATE_USER_OP): self._call_validate_user_op,
            selector(abi.EXECUTE): self._call_execute,
            selector(abi.EXECUTE_BY_OWNER): self._call_execute_by_owner,
            selector(abi.TRANSFER_OWNERSHIP): self._call_transfer_ownership,
            selector(abi.OWNER): self._call_owner,
            selector(abi.GET_ENTRY_POINT): self._call_get_entry_point,
        }

    @classmethod
    def for_network(cls, address: str, owner: str, config: NetworkConfig) -> "MinimalAccount":
        """Account bound to the network's entry point, with its prefund gas limit."""
        return cls(address, config.entry_point, owner, prefund_gas_limit=config.prefund_gas_limit)

    def on_deploy(self, state: WorldState) -> None:
        if is_zero_address(self._initial_owner):
            raise ValidationError("Account owner cannot be the zero address")
        state.set_storage(self.address, ENTRY_POINT_SLOT, self._initial_entry_point)
        state.set_storage(self.address, OWNER_SLOT, self._initial_owner)
        state.emit_log(self.address, OWNERSHIP_TRANSFERRED, previous_owner=None, new_owner=self._initial_owner)

    # --- Getters ---
    def owner(self, state: WorldState) -> str:
        return state.get_storage(self.address, OWNER_SLOT)

    def get_entry_point(self, state: WorldState) -> str:
        return state.get_storage(self.address, ENTRY_POINT_SLOT)

    # --- Entry points ---
    def validate_user_op(self, ctx: CallContext, op: PackedUserOperation, user_op_hash: bytes,
                         missing_account_funds: int) -> ValidationOutcome:
        """
        Validate the owner's signature and pay the prefund.

        Args:
            ctx: Call context; its sender must be the entry point
            op: The user operation being validated
            user_op_hash: Request digest computed by the entry point
            missing_account_funds: Amount owed to the entry point

        Returns:
            SUCCESS or FAILURE. Nothing is paid on FAILURE.

        Raises:
            NotAuthorizedCaller: caller is not the entry point
            PrefundTransferFailed: the payment to the entry point failed
        """
        require_from_privileged_caller(ctx.sender, self.get_entry_point(ctx.state))

        outcome = validate_signature(op, user_op_hash, self.owner(ctx.state))
        validations_total.labels(outcome=outcome.name.lower()).inc()
        if outcome is ValidationOutcome.FAILURE:
            logger.warning(f"Account {self.address}: user op signature rejected")
            return outcome

        self._pay_prefund(ctx, missing_account_funds)
        return outcome

    def execute(self, ctx: CallContext, dest: str, value: int, data: bytes) -> bytes:
        require_from_privileged_caller(ctx.sender, self.get_entry_point(ctx.state))
        return self._forward(ctx, dest, value, data)

    def execute_by_owner(self, ctx: CallContext, dest: str, value: int, data: bytes) -> bytes:
        require_from_privileged_caller_or_owner(ctx.sender, self.get_entry_point(ctx.state), self.owner(ctx.state))
        return self._forward(ctx, dest, value, data)

    def transfer_ownership(self, ctx: CallContext, new_owner: str) -> None:
        previous = self.owner(ctx.state)
        if ctx.sender != previous:
            raise OwnableUnauthorizedAccount(ctx.sender)
        if not is_valid_address(new_owner) or is_zero_address(new_owner):
            raise InvalidNewOwner()
        new_owner = normalize_address(new_owner)

        ctx.state.set_storage(self.address, OWNER_SLOT, new_owner)
        ctx.emit(OWNERSHIP_TRANSFERRED, previous_owner=previous, new_owner=new_owner)
        ownership_transfers_total.inc()
        logger.info(f"Account {self.address}: ownership transferred {previous} -> {new_owner}")

    # --- Internal ---
    def _pay_prefund(self, ctx: CallContext, amount: int):
        if amount == 0:
            return
        result = ctx.call(ctx.sender, value=amount, gas=self.prefund_gas_limit)
        if not result.success:
            prefund_failures_total.inc()
            logger.warning(f"Account {self.address}: prefund of {amount} to {ctx.sender} failed")
            raise PrefundTransferFailed()
        ctx.emit(PREFUND_PAID, to=ctx.sender, amount=amount)
        prefund_paid_total.inc(amount)

    def _forward(self, ctx: CallContext, dest: str, value: int, data: bytes) -> bytes:
        result = ctx.call(dest, value=value, data=data)
        if not result.success:
            forwarded_calls_total.labels(status="failed").inc()
            logger.warning(f"Account {self.address}: call to {dest} failed")
            raise ForwardedCallFailed(result.return_data)
        forwarded_calls_total.labels(status="success").inc()
        ctx.emit(CALL_FORWARDED, dest=normalize_address(dest), value=value, selector=data[:4].hex())
        return result.return_data

    # --- Calldata dispatch ---
    def handle_call(self, ctx: CallContext, data: bytes) -> bytes:
        if not data:
            # receive(): plain value transfers are always accepted
            return b""
        handler = self._handlers.get(data[:4])
        if handler is None:
            # fallback(): unknown selectors are accepted and do nothing
            logger.debug(f"Account {self.address}: fallback for selector 0x{data[:4].hex()}")
            return b""
        return handler(ctx, data)

    def _call_validate_user_op(self, ctx: CallContext, data: bytes) -> bytes:
        op_tuple, user_op_hash, missing = abi.decode_calldata(abi.VALIDATE_USER_OP_ARGS, data)
        try:
            op = PackedUserOperation.from_abi_tuple(op_tuple)
        except ValueError as e:
            raise Revert(b"", f"malformed user operation: {e}")
        return abi.encode_uint(int(self.validate_user_op(ctx, op, user_op_hash, missing)))

    def _call_execute(self, ctx: CallContext, data: bytes) -> bytes:
        dest, value, payload = abi.decode_calldata(abi.EXECUTE_ARGS, data)
        self.execute(ctx, dest, value, payload)
        return b""

    def _call_execute_by_owner(self, ctx: CallContext, data: bytes) -> bytes:
        dest, value, payload = abi.decode_calldata(abi.EXECUTE_ARGS, data)
        self.execute_by_owner(ctx, dest, value, payload)
        return b""

    def _call_transfer_ownership(self, ctx: CallContext, data: bytes) -> bytes:
        (new_owner,) = abi.decode_calldata(abi.TRANSFER_OWNERSHIP_ARGS, data)
        self.transfer_ownership(ctx, new_owner)
        return b""

    def _call_owner(self, ctx: CallContext, data: bytes) -> bytes:
        return abi.encode_address(self.owner(ctx.state))

    def _call_get_entry_point(self, ctx: CallContext, data: bytes) -> bytes:
        return abi.encode_address(self.get_entry_point(ctx.state))
