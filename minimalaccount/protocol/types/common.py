# MIT License
# Copyright (c) 2025 Hashborn

from enum import Enum, IntEnum
from typing import Optional


class ValidationOutcome(IntEnum):
    """Validation data returned by validateUserOp (no time-range packing)."""
    SUCCESS = 0
    FAILURE = 1


class CallerRole(str, Enum):
    PRIVILEGED_CALLER = "PRIVILEGED_CALLER"
    OWNER = "OWNER"
    OTHER = "OTHER"


class ProtocolError(Exception):
    pass


class ValidationError(ProtocolError, ValueError):
    """Malformed input: bad address, digest or key."""


class Revert(ProtocolError):
    """
    Aborts the current call frame.

    Everything the frame changed is rolled back by the message call that
    catches it; `data` is handed back to the caller verbatim.
    """

    def __init__(self, data: bytes = b"", message: Optional[str] = None):
        self.data = bytes(data)
        super().__init__(message or f"execution reverted (0x{self.data.hex()})")


class OutOfGas(Revert):
    def __init__(self, needed: int, available: int):
        self.needed = needed
        self.available = available
        super().__init__(b"", f"out of gas: need {needed}, have {available}")


class InsufficientBalance(Revert):
    def __init__(self, address: str, have: int, need: int):
        self.address = address
        self.have = have
        self.need = need
        super().__init__(b"", f"Insufficient balance: {address} has {have}, need {need}")
