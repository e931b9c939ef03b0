from eth_abi import encode # type: ignore
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any, Dict, Tuple

from ..crypto.hash import keccak256
from ..crypto.addresses import normalize_address

UINT128_MAX = 2**128 - 1
UINT256_MAX = 2**256 - 1
EMPTY_WORD = b"\x00" * 32

USER_OP_ABI_TYPE = "(address,uint256,bytes,bytes,bytes32,uint256,bytes32,bytes,bytes)"

def pack_uints(high: int, low: int) -> bytes:
    """Packs two uint128 values into one 32-byte word (high || low)."""
    if not (0 <= high <= UINT128_MAX and 0 <= low <= UINT128_MAX):
        raise ValueError("packed values must fit in 128 bits")
    return ((high << 128) | low).to_bytes(32, 'big')

def unpack_uints(word: bytes) -> Tuple[int, int]:
    value = int.from_bytes(word, 'big')
    return value >> 128, value & UINT128_MAX

def _to_bytes(value: Any) -> Any:
    if isinstance(value, str):
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    return value


class PackedUserOperation(BaseModel):
    """
    One request the account is asked to authorize (ERC-4337 v0.7 layout).

    The account reads the signature and nothing else; every other field is
    carried for the entry point and for digest computation.
    """
    model_config = ConfigDict(frozen=True)

    sender: str
    nonce: int = 0
    init_code: bytes = b""
    call_data: bytes = b""
    account_gas_limits: bytes = EMPTY_WORD   # verificationGasLimit || callGasLimit
    pre_verification_gas: int = 0
    gas_fees: bytes = EMPTY_WORD             # maxPriorityFeePerGas || maxFeePerGas
    paymaster_and_data: bytes = b""
    signature: bytes = b""

    @field_validator("sender", mode="before")
    @classmethod
    def _check_sender(cls, v: Any) -> str:
        return normalize_address(v)

    @field_validator("init_code", "call_data", "paymaster_and_data", "signature", mode="before")
    @classmethod
    def _check_bytes(cls, v: Any) -> Any:
        return _to_bytes(v)

    @field_validator("account_gas_limits", "gas_fees", mode="before")
    @classmethod
    def _check_word(cls, v: Any) -> Any:
        v = _to_bytes(v)
        if isinstance(v, bytes) and len(v) != 32:
            raise ValueError(f"packed gas word must be 32 bytes, got {len(v)}")
        return v

    @field_validator("nonce", "pre_verification_gas")
    @classmethod
    def _check_uint256(cls, v: int) -> int:
        if not 0 <= v <= UINT256_MAX:
            raise ValueError("value out of uint256 range")
        return v

    # --- Gas word accessors ---
    @property
    def verification_gas_limit(self) -> int:
        return unpack_uints(self.account_gas_limits)[0]

    @property
    def call_gas_limit(self) -> int:
        return unpack_uints(self.account_gas_limits)[1]

    @property
    def max_priority_fee_per_gas(self) -> int:
        return unpack_uints(self.gas_fees)[0]

    @property
    def max_fee_per_gas(self) -> int:
        return unpack_uints(self.gas_fees)[1]

    # --- Hashing ---
    def pack(self) -> bytes:
        """ABI-encodes the operation for hashing (signature excluded, dynamic fields hashed)."""
        return encode(
            ["address", "uint256", "bytes32", "bytes32", "bytes32", "uint256", "bytes32", "bytes32"],
            [
                self.sender,
                self.nonce,
                keccak256(self.init_code),
                keccak256(self.call_data),
                self.account_gas_limits,
                self.pre_verification_gas,
                self.gas_fees,
                keccak256(self.paymaster_and_data),
            ],
        )

    def hash(self, entry_point: str, chain_id: int) -> bytes:
        """
        Get the request digest the owner signs.

        Binds the packed operation to the entry point address and chain id so
        a signature cannot be replayed against another entry point or chain.
        """
        inner = keccak256(self.pack())
        return keccak256(encode(["bytes32", "address", "uint256"], [inner, normalize_address(entry_point), chain_id]))

    def with_signature(self, signature: bytes) -> "PackedUserOperation":
        return self.model_copy(update={"signature": bytes(signature)})

    # --- ABI / JSON conversion ---
    def as_abi_tuple(self) -> tuple:
        return (
            self.sender,
            self.nonce,
            self.init_code,
            self.call_data,
            self.account_gas_limits,
            self.pre_verification_gas,
            self.gas_fees,
            self.paymaster_and_data,
            self.signature,
        )

    @classmethod
    def from_abi_tuple(cls, values: tuple) -> "PackedUserOperation":
        (sender, nonce, init_code, call_data, account_gas_limits,
         pre_verification_gas, gas_fees, paymaster_and_data, signature) = values
        return cls(
            sender=sender,
            nonce=nonce,
            init_code=init_code,
            call_data=call_data,
            account_gas_limits=account_gas_limits,
            pre_verification_gas=pre_verification_gas,
            gas_fees=gas_fees,
            paymaster_and_data=paymaster_and_data,
            signature=signature,
        )

    def to_rpc(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "nonce": hex(self.nonce),
            "initCode": "0x" + self.init_code.hex(),
            "callData": "0x" + self.call_data.hex(),
            "accountGasLimits": "0x" + self.account_gas_limits.hex(),
            "preVerificationGas": hex(self.pre_verification_gas),
            "gasFees": "0x" + self.gas_fees.hex(),
            "paymasterAndData": "0x" + self.paymaster_and_data.hex(),
            "signature": "0x" + self.signature.hex(),
        }

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PackedUserOperation":
        def as_int(v: Any) -> int:
            return int(v, 16) if isinstance(v, str) and v.startswith("0x") else int(v)

        return cls(
            sender=data["sender"],
            nonce=as_int(data.get("nonce", 0)),
            init_code=data.get("initCode", b""),
            call_data=data.get("callData", b""),
            account_gas_limits=data.get("accountGasLimits", EMPTY_WORD),
            pre_verification_gas=as_int(data.get("preVerificationGas", 0)),
            gas_fees=data.get("gasFees", EMPTY_WORD),
            paymaster_and_data=data.get("paymasterAndData", b""),
            signature=data.get("signature", b""),
        )
