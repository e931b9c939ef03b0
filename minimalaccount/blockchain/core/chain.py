# MIT License
# Copyright (c) 2025 Hashborn

from typing import Optional
import logging
import threading
from ...protocol.config.params import CURRENT_NETWORK, NetworkConfig
from ...protocol.crypto.addresses import normalize_address
from ..storage.db import StorageDB
from .calls import CallResult, Contract, message_call
from .events import EventBus, event_bus
from .state import WorldState

logger = logging.getLogger(__name__)

class Blockchain:
    """
    Execution environment hosting contracts and plain accounts.

    Every top-level call runs under one lock, so operations against the
    state it owns are applied one at a time and each either commits fully
    or leaves no trace.
    """

    def __init__(self, db_path: Optional[str] = None, config: NetworkConfig = CURRENT_NETWORK,
                 bus: EventBus = event_bus):
        self.db = StorageDB(db_path) if db_path else None
        self._lock = threading.RLock()
        self.state = WorldState(self.db)
        self.config = config
        self.events = bus
        logger.info(f"Chain initialized for network {config.network_id} (chain_id={config.chain_id})")

    def close(self):
        if self.db is not None:
            self.db.close()

    # --- Thread-safe wrappers ---
    def deploy(self, contract: Contract, balance: int = 0) -> Contract:
        """Registers contract code at its address, runs its deploy hook and funds it."""
        with self._lock:
            if self.state.get_code(contract.address) is not None:
                raise ValueError(f"Address {contract.address} already has code")
            snapshot = self.state.snapshot()
            try:
                contract.on_deploy(self.state)
            except Exception:
                self.state.restore(snapshot)
                raise
            self.state.set_code(contract)
            if balance:
                self._credit(contract.address, balance)
            self._commit_logs()
            self.state.persist()
            logger.info(f"Deployed {type(contract).__name__} at {contract.address}")
            return contract

    def attach(self, contract: Contract) -> Contract:
        """Re-attaches code to an address whose state was loaded from storage."""
        with self._lock:
            self.state.set_code(contract)
            return contract

    def fund(self, address: str, amount: int):
        with self._lock:
            self._credit(address, amount)
            self.state.persist()

    def call(self, sender: str, to: str, value: int = 0, data: bytes = b"",
             gas: Optional[int] = None) -> CallResult:
        """Runs one top-level call from `sender`. Never raises for a reverted call."""
        with self._lock:
            sender = normalize_address(sender)
            result = message_call(self.state, sender, to, value, data, gas)
            if result.success:
                result.logs = self._commit_logs()
                self.state.persist()
            else:
                # Reverted frames already dropped their logs
                self.state.logs.clear()
            return result

    def static_call(self, sender: str, to: str, data: bytes = b"") -> CallResult:
        """Runs a call against a copy of the state and discards every effect."""
        with self._lock:
            scratch = self.state.clone()
        return message_call(scratch, normalize_address(sender), to, 0, data, None)

    # --- Queries ---
    def balance_of(self, address: str) -> int:
        with self._lock:
            return self.state.get_balance(address)

    def get_storage(self, address: str, slot: str) -> Optional[str]:
        with self._lock:
            return self.state.get_storage(address, slot)

    # --- Internal ---
    def _credit(self, address: str, amount: int):
        if amount < 0:
            raise ValueError(f"Negative amount: {amount}")
        acc = self.state.get_account(address)
        acc.balance += amount
        self.state.set_account(acc)

    def _commit_logs(self):
        logs = list(self.state.logs)
        self.state.logs.clear()
        for log in logs:
            self.events.publish(log)
        return logs
