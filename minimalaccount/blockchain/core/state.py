from dataclasses import dataclass
from typing import Dict, Optional, List, Any, TYPE_CHECKING
import logging
from .accounts import Account
from .events import Log
from ...protocol.crypto.addresses import normalize_address
from ...protocol.types.common import InsufficientBalance
from ..storage.db import StorageDB

if TYPE_CHECKING:
    from .calls import Contract

logger = logging.getLogger(__name__)


@dataclass
class StateSnapshot:
    accounts: Dict[str, Account]
    log_count: int


class WorldState:
    def __init__(self, db: Optional[StorageDB] = None, accounts: Dict[str, Account] = None,
                 contracts: Dict[str, "Contract"] = None):
        self.db = db
        # Cache for modified/accessed accounts: address -> Account
        self._accounts: Dict[str, Account] = accounts if accounts is not None else {}
        # Code registry: address -> contract object (code holds no state of its own)
        self._contracts: Dict[str, "Contract"] = contracts if contracts is not None else {}
        # Logs written by the call currently in progress
        self.logs: List[Log] = []

    def clone(self) -> 'WorldState':
        """Creates a copy of the state (for simulation)."""
        new_accounts = {k: v.model_copy(deep=True) for k, v in self._accounts.items()}
        cloned = WorldState(self.db, new_accounts, dict(self._contracts))
        cloned.logs = list(self.logs)
        return cloned

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            accounts={k: v.model_copy(deep=True) for k, v in self._accounts.items()},
            log_count=len(self.logs),
        )

    def restore(self, snapshot: StateSnapshot):
        """Rolls back every account change and log written since `snapshot`."""
        self._accounts = snapshot.accounts
        del self.logs[snapshot.log_count:]

    # --- Accounts ---
    def get_account(self, address: str) -> Account:
        address = normalize_address(address)
        if address in self._accounts:
            return self._accounts[address]

        # Try load from DB
        if self.db is not None:
            raw_json = self.db.get_state(f"acc:{address}")
            if raw_json:
                acc = Account.model_validate_json(raw_json)
                self._accounts[address] = acc
                return acc

        # Return generic new account
        return Account(address=address)

    def set_account(self, account: Account):
        """Updates account in local cache."""
        self._accounts[account.address] = account

    def get_balance(self, address: str) -> int:
        return self.get_account(address).balance

    def transfer(self, sender: str, recipient: str, amount: int):
        """Moves native balance. Raises InsufficientBalance (a revert) if the sender cannot cover it."""
        if amount < 0:
            raise ValueError(f"Negative transfer amount: {amount}")
        if amount == 0:
            return
        payer = self.get_account(sender)
        if payer.balance < amount:
            raise InsufficientBalance(payer.address, payer.balance, amount)
        payer.balance -= amount
        self.set_account(payer)

        payee = self.get_account(recipient)
        payee.balance += amount
        self.set_account(payee)

    # --- Storage ---
    def get_storage(self, address: str, slot: str) -> Optional[str]:
        return self.get_account(address).storage.get(slot)

    def set_storage(self, address: str, slot: str, value: str):
        acc = self.get_account(address)
        acc.storage[slot] = value
        self.set_account(acc)

    # --- Code ---
    def get_code(self, address: str) -> Optional["Contract"]:
        return self._contracts.get(normalize_address(address))

    def set_code(self, contract: "Contract"):
        self._contracts[contract.address] = contract

    # --- Logs ---
    def emit_log(self, address: str, name: str, **data: Any):
        self.logs.append(Log(address=address, name=name, data=data))

    def persist(self):
        """Writes cached accounts to DB."""
        if self.db is None:
            return
        self.db.set_many({f"acc:{addr}": acc.model_dump_json() for addr, acc in self._accounts.items()})
        logger.debug(f"Persisted {len(self._accounts)} accounts")
