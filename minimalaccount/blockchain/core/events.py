"""
Contract logs and the event bus they are published on.

Contracts append `Log` records to the world state while they run. A log
belongs to the call frame that wrote it: when the frame reverts, its logs
are dropped with the rest of its state. Only logs of a committed top-level
call reach the `EventBus`.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Callable, Any
import logging

logger = logging.getLogger(__name__)

# Log names emitted by the contracts in this package
OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
PREFUND_PAID = "PrefundPaid"
CALL_FORWARDED = "CallForwarded"
DEPOSITED = "Deposited"
USER_OPERATION_EVENT = "UserOperationEvent"


@dataclass
class Log:
    address: str
    name: str
    data: Dict[str, Any] = field(default_factory=dict)


class EventBus:
    """
    Synchronous pub/sub for committed contract logs.

    Listeners are called in the publishing thread. A failing listener is
    logged and does not affect other listeners or the call that produced
    the log.
    """

    def __init__(self):
        self.listeners: Dict[str, List[Callable]] = {}

    def subscribe(self, event_name: str, callback: Callable) -> None:
        self.listeners.setdefault(event_name, []).append(callback)
        logger.debug(f"Subscribed to event: {event_name}")

    def unsubscribe(self, event_name: str, callback: Callable) -> None:
        if event_name in self.listeners:
            try:
                self.listeners[event_name].remove(callback)
                logger.debug(f"Unsubscribed from event: {event_name}")
            except ValueError:
                logger.warning(f"Callback not found for event: {event_name}")

    def publish(self, log: Log) -> None:
        """Deliver a committed log to every subscriber of its name."""
        listeners = self.listeners.get(log.name, [])
        if not listeners:
            logger.debug(f"No listeners for event: {log.name}")
            return

        for callback in list(listeners):
            try:
                callback(address=log.address, **log.data)
            except Exception as e:
                logger.error(f"Error in event callback for {log.name}: {e}", exc_info=True)

    def clear(self, event_name: str = None) -> None:
        if event_name:
            self.listeners.pop(event_name, None)
        else:
            self.listeners.clear()


# Global event bus instance
event_bus = EventBus()
