"""
Message calls between addresses.

A message call moves value to its destination and runs the destination's
code, if any. The call is one unit of work: a `Revert` raised anywhere
inside it rolls back every balance, storage and log change made since the
call started, and the caller receives the revert bytes in a failed
`CallResult` instead of an exception.
"""
from dataclasses import dataclass, field
from typing import List, Optional
import logging

from .events import Log
from .state import WorldState
from ...protocol.crypto.addresses import normalize_address
from ...protocol.types.common import Revert, OutOfGas

logger = logging.getLogger(__name__)

MAX_CALL_DEPTH = 1024


@dataclass
class CallResult:
    success: bool
    return_data: bytes = b""
    gas_used: int = 0
    # Committed logs; only filled in for top-level calls
    logs: List[Log] = field(default_factory=list)


@dataclass
class CallContext:
    """What running code can see of the call it is executing in."""
    state: WorldState
    sender: str
    address: str
    value: int = 0
    gas: Optional[int] = None
    gas_used: int = 0
    depth: int = 0

    @property
    def gas_left(self) -> Optional[int]:
        if self.gas is None:
            return None
        return self.gas - self.gas_used

    def use_gas(self, amount: int):
        if self.gas is not None and self.gas_used + amount > self.gas:
            raise OutOfGas(amount, self.gas - self.gas_used)
        self.gas_used += amount

    def call(self, to: str, value: int = 0, data: bytes = b"", gas: Optional[int] = None) -> CallResult:
        """Calls out from the running contract. The callee cannot get more gas than this frame has left."""
        available = self.gas_left
        if available is not None:
            gas = available if gas is None else min(gas, available)
        result = message_call(self.state, self.address, to, value, data, gas, depth=self.depth + 1)
        self.gas_used += result.gas_used
        return result

    def emit(self, name: str, **data):
        self.state.emit_log(self.address, name, **data)


class Contract:
    """
    Code deployed at an address.

    Subclasses implement `handle_call`. Contract objects hold only immutable
    configuration; everything mutable lives in the world state so that it is
    covered by snapshots.
    """

    def __init__(self, address: str):
        self.address = normalize_address(address)

    def on_deploy(self, state: WorldState) -> None:
        """Runs once when the contract is deployed."""

    def handle_call(self, ctx: CallContext, data: bytes) -> bytes:
        raise NotImplementedError


def message_call(state: WorldState, sender: str, to: str, value: int = 0, data: bytes = b"",
                 gas: Optional[int] = None, depth: int = 0) -> CallResult:
    snapshot = state.snapshot()
    ctx = CallContext(state=state, sender=sender, address=normalize_address(to), value=value, gas=gas, depth=depth)
    try:
        if depth > MAX_CALL_DEPTH:
            raise Revert(b"", "max call depth exceeded")
        state.transfer(sender, ctx.address, value)
        code = state.get_code(ctx.address)
        ret = code.handle_call(ctx, bytes(data)) if code is not None else b""
        return CallResult(success=True, return_data=bytes(ret or b""), gas_used=ctx.gas_used)
    except Revert as e:
        state.restore(snapshot)
        logger.debug(f"Call {sender} -> {ctx.address} reverted: {e}")
        # Running out of gas burns the whole allowance
        gas_used = ctx.gas if isinstance(e, OutOfGas) and ctx.gas is not None else ctx.gas_used
        return CallResult(success=False, return_data=e.data, gas_used=gas_used)
    except Exception:
        state.restore(snapshot)
        raise
