"""
Custom errors raised by the account and the entry point.

Each error is a `Revert` whose data is the ABI encoding of a custom error:
a 4-byte selector of the error signature followed by its arguments. A
caller that only sees raw revert bytes can turn them back into the Python
exception with `decode_error`.
"""
from eth_abi import encode, decode # type: ignore
from eth_abi.exceptions import DecodingError # type: ignore
from typing import Dict, Optional, Tuple, Type

from ..protocol.crypto.hash import selector
from ..protocol.types.common import Revert


class AccountError(Revert):
    SIGNATURE = ""
    ARG_TYPES: Tuple[str, ...] = ()

    def __init__(self, *values):
        self.values = values
        data = selector(self.SIGNATURE)
        if self.ARG_TYPES:
            data += encode(list(self.ARG_TYPES), list(values))
        super().__init__(data, f"{type(self).__name__} ({self.SIGNATURE})")


class NotAuthorizedCaller(AccountError):
    """Caller is not the entry point on an entry-point-only function."""
    SIGNATURE = "MinimalAccount__NotFromEntryPoint()"


class NotAuthorizedCallerOrOwner(AccountError):
    SIGNATURE = "MinimalAccount__NotFromEntryPointOrOwner()"


class PrefundTransferFailed(AccountError):
    SIGNATURE = "MinimalAccount__PrefundFailed()"


class ForwardedCallFailed(AccountError):
    """The forwarded call reverted; `reason` holds the callee's revert bytes unmodified."""
    SIGNATURE = "MinimalAccount__CallFailed(bytes)"
    ARG_TYPES = ("bytes",)

    def __init__(self, reason: bytes):
        super().__init__(bytes(reason))

    @property
    def reason(self) -> bytes:
        return self.values[0]


class InvalidNewOwner(AccountError):
    SIGNATURE = "MinimalAccount__InvalidNewOwner()"


class OwnableUnauthorizedAccount(AccountError):
    SIGNATURE = "OwnableUnauthorizedAccount(address)"
    ARG_TYPES = ("address",)


# Entry point
class FailedOp(AccountError):
    SIGNATURE = "FailedOp(uint256,string)"
    ARG_TYPES = ("uint256", "string")

    @property
    def op_index(self) -> int:
        return self.values[0]

    @property
    def reason(self) -> str:
        return self.values[1]


ERRORS: Dict[bytes, Type[AccountError]] = {
    selector(cls.SIGNATURE): cls
    for cls in (
        NotAuthorizedCaller,
        NotAuthorizedCallerOrOwner,
        PrefundTransferFailed,
        ForwardedCallFailed,
        InvalidNewOwner,
        OwnableUnauthorizedAccount,
        FailedOp,
    )
}


def decode_error(data: bytes) -> Optional[AccountError]:
    """Maps revert bytes to the matching error, or None if they are not a known custom error."""
    cls = ERRORS.get(bytes(data[:4])) if len(data) >= 4 else None
    if cls is None:
        return None
    try:
        values = decode(list(cls.ARG_TYPES), data[4:]) if cls.ARG_TYPES else ()
    except DecodingError:
        return None
    return cls(*values)


def raise_for_result(result) -> None:
    """Raises the decoded error for a failed CallResult; does nothing for a successful one."""
    if result.success:
        return
    error = decode_error(result.return_data)
    if error is not None:
        raise error
    raise Revert(result.return_data)
