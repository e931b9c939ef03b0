"""Addresses and small contracts shared by the tests."""
from minimalaccount.blockchain.core.calls import CallContext, Contract
from minimalaccount.protocol.types.common import Revert

ACCOUNT_ADDRESS = "0x1000000000000000000000000000000000000001"
RECORDER_ADDRESS = "0x2000000000000000000000000000000000000002"
REVERTER_ADDRESS = "0x3000000000000000000000000000000000000003"
BENEFICIARY = "0x4000000000000000000000000000000000000004"
# Second well-known anvil account
STRANGER_KEY = bytes.fromhex("59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d")


class Recorder(Contract):
    """Counts the calls it receives and remembers the last one."""

    def handle_call(self, ctx: CallContext, data: bytes) -> bytes:
        calls = int(ctx.state.get_storage(self.address, "calls") or 0)
        ctx.state.set_storage(self.address, "calls", str(calls + 1))
        ctx.state.set_storage(self.address, "last_sender", ctx.sender)
        ctx.state.set_storage(self.address, "last_value", str(ctx.value))
        ctx.state.set_storage(self.address, "last_data", data.hex())
        ctx.emit("Recorded", calls=calls + 1)
        return b"recorded"


class Reverter(Contract):
    """Writes to its storage, then reverts with fixed bytes."""
    REASON = bytes.fromhex("08c379a0") + b"\x00" * 28 + b"custom reason"

    def handle_call(self, ctx: CallContext, data: bytes) -> bytes:
        ctx.state.set_storage(self.address, "touched", "1")
        ctx.emit("Touched")
        raise Revert(self.REASON)


class GasHungry(Contract):
    """Accepts value but burns a fixed amount of gas doing so."""

    def __init__(self, address: str, gas: int):
        super().__init__(address)
        self.gas = gas

    def handle_call(self, ctx: CallContext, data: bytes) -> bytes:
        ctx.use_gas(self.gas)
        return b""


class Crasher(Contract):
    """Raises something that is not a revert."""

    def handle_call(self, ctx: CallContext, data: bytes) -> bytes:
        ctx.state.set_storage(self.address, "touched", "1")
        raise RuntimeError("boom")
