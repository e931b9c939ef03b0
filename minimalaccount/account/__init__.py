# MIT License
# Copyright (c) 2025 Hashborn

"""
Account Module

The minimal account contract, the entry point that drives it, and the
helpers used to build and sign user operations for them.
"""

from .entry_point import EntryPoint, required_prefund
from .errors import (
    AccountError,
    FailedOp,
    ForwardedCallFailed,
    InvalidNewOwner,
    NotAuthorizedCaller,
    NotAuthorizedCallerOrOwner,
    OwnableUnauthorizedAccount,
    PrefundTransferFailed,
    decode_error,
    raise_for_result,
)
from .minimal_account import MinimalAccount
from .user_ops import generate_signed_user_op, sign_user_op

__all__ = [
    "AccountError",
    "EntryPoint",
    "FailedOp",
    "ForwardedCallFailed",
    "InvalidNewOwner",
    "MinimalAccount",
    "NotAuthorizedCaller",
    "NotAuthorizedCallerOrOwner",
    "OwnableUnauthorizedAccount",
    "PrefundTransferFailed",
    "decode_error",
    "generate_signed_user_op",
    "raise_for_result",
    "required_prefund",
    "sign_user_op",
]
