"""
Calldata encoding for the account and entry point.

Function selectors are the first four bytes of the Keccak-256 of the
canonical signature; arguments follow in the standard ABI encoding.
"""
from eth_abi import encode, decode # type: ignore
from eth_abi.exceptions import DecodingError # type: ignore
from eth_utils import to_checksum_address
from typing import List, Sequence, Tuple

from ..protocol.crypto.hash import selector
from ..protocol.types.common import Revert
from ..protocol.types.user_op import PackedUserOperation, USER_OP_ABI_TYPE

# --- Account ---
VALIDATE_USER_OP_ARGS = [USER_OP_ABI_TYPE, "bytes32", "uint256"]
VALIDATE_USER_OP = f"validateUserOp({','.join(VALIDATE_USER_OP_ARGS)})"
EXECUTE_ARGS = ["address", "uint256", "bytes"]
EXECUTE = "execute(address,uint256,bytes)"
EXECUTE_BY_OWNER = "executeByOwner(address,uint256,bytes)"
TRANSFER_OWNERSHIP_ARGS = ["address"]
TRANSFER_OWNERSHIP = "transferOwnership(address)"
OWNER = "owner()"
GET_ENTRY_POINT = "getEntryPoint()"

# --- Entry point ---
HANDLE_OPS_ARGS = [f"{USER_OP_ABI_TYPE}[]", "address"]
HANDLE_OPS = f"handleOps({','.join(HANDLE_OPS_ARGS)})"
DEPOSIT_TO_ARGS = ["address"]
DEPOSIT_TO = "depositTo(address)"
BALANCE_OF_ARGS = ["address"]
BALANCE_OF = "balanceOf(address)"
GET_USER_OP_HASH_ARGS = [USER_OP_ABI_TYPE]
GET_USER_OP_HASH = f"getUserOpHash({USER_OP_ABI_TYPE})"


def encode_call(signature: str, arg_types: Sequence[str] = (), args: Sequence = ()) -> bytes:
    return selector(signature) + (encode(list(arg_types), list(args)) if arg_types else b"")

def decode_args(arg_types: Sequence[str], data: bytes) -> Tuple:
    """Decodes the arguments following the 4-byte selector."""
    return decode(list(arg_types), data[4:])

def decode_calldata(arg_types: Sequence[str], data: bytes) -> Tuple:
    """Like decode_args, but malformed calldata reverts the call instead of raising DecodingError."""
    try:
        return decode_args(arg_types, data)
    except DecodingError as e:
        raise Revert(b"", f"malformed calldata: {e}")

def encode_validate_user_op(op: PackedUserOperation, user_op_hash: bytes, missing_funds: int) -> bytes:
    return encode_call(VALIDATE_USER_OP, VALIDATE_USER_OP_ARGS, [op.as_abi_tuple(), user_op_hash, missing_funds])

def encode_execute(dest: str, value: int, data: bytes) -> bytes:
    return encode_call(EXECUTE, EXECUTE_ARGS, [dest, value, data])

def encode_execute_by_owner(dest: str, value: int, data: bytes) -> bytes:
    return encode_call(EXECUTE_BY_OWNER, EXECUTE_ARGS, [dest, value, data])

def encode_transfer_ownership(new_owner: str) -> bytes:
    return encode_call(TRANSFER_OWNERSHIP, TRANSFER_OWNERSHIP_ARGS, [new_owner])

def encode_owner() -> bytes:
    return encode_call(OWNER)

def encode_get_entry_point() -> bytes:
    return encode_call(GET_ENTRY_POINT)

def encode_handle_ops(ops: List[PackedUserOperation], beneficiary: str) -> bytes:
    return encode_call(HANDLE_OPS, HANDLE_OPS_ARGS, [[op.as_abi_tuple() for op in ops], beneficiary])

def encode_deposit_to(account: str) -> bytes:
    return encode_call(DEPOSIT_TO, DEPOSIT_TO_ARGS, [account])

def encode_balance_of(account: str) -> bytes:
    return encode_call(BALANCE_OF, BALANCE_OF_ARGS, [account])

def encode_get_user_op_hash(op: PackedUserOperation) -> bytes:
    return encode_call(GET_USER_OP_HASH, GET_USER_OP_HASH_ARGS, [op.as_abi_tuple()])

# --- Return values ---
def encode_uint(value: int) -> bytes:
    return encode(["uint256"], [value])

def decode_uint(data: bytes) -> int:
    return decode(["uint256"], data)[0]

def encode_address(address: str) -> bytes:
    return encode(["address"], [address])

def decode_address(data: bytes) -> str:
    return to_checksum_address(decode(["address"], data)[0])

def encode_bytes32(value: bytes) -> bytes:
    return encode(["bytes32"], [value])

def decode_bytes32(data: bytes) -> bytes:
    return decode(["bytes32"], data)[0]
