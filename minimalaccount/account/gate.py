"""Caller checks that run before anything else in a gated account function."""
from ..protocol.types.common import CallerRole
from .errors import NotAuthorizedCaller, NotAuthorizedCallerOrOwner


def classify_caller(caller: str, privileged_caller: str, owner: str) -> CallerRole:
    if caller == privileged_caller:
        return CallerRole.PRIVILEGED_CALLER
    if caller == owner:
        return CallerRole.OWNER
    return CallerRole.OTHER


def require_from_privileged_caller(caller: str, privileged_caller: str) -> None:
    if caller != privileged_caller:
        raise NotAuthorizedCaller()


def require_from_privileged_caller_or_owner(caller: str, privileged_caller: str, owner: str) -> None:
    if classify_caller(caller, privileged_caller, owner) is CallerRole.OTHER:
        raise NotAuthorizedCallerOrOwner()
