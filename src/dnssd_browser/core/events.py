"""
Discovery Events

Tagged event variants emitted by the browser and the observer list that
fans them out to consumers.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .service import ServiceRecord

logger = logging.getLogger(__name__)


class ServiceEventType(Enum):
    """Kind of change reported for a service"""

    UP = "up"
    DOWN = "down"
    SRV_UPDATE = "srv-update"
    TXT_UPDATE = "txt-update"


@dataclass(frozen=True)
class ServiceEvent:
    """A single discovery event.

    For updates ``service`` is the new record and ``previous`` the one it
    replaced. SRV and TXT updates are reported as separate events even when
    one packet changes both.
    """

    type: ServiceEventType
    service: ServiceRecord
    previous: Optional[ServiceRecord] = None

    @property
    def args(self) -> Tuple[ServiceRecord, ...]:
        if self.previous is None:
            return (self.service,)
        return (self.service, self.previous)


EventCallback = Callable[[ServiceEvent], None]


class EventDispatcher:
    """Ordered observer list for service events"""

    def __init__(self):
        self._subscribers: List[EventCallback] = []
        self._handlers: Dict[ServiceEventType, List[Callable[..., None]]] = {
            event_type: [] for event_type in ServiceEventType
        }

    def subscribe(self, callback: EventCallback) -> None:
        """Receive every event as a ``ServiceEvent``"""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: EventCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def on(self, event_type, callback: Callable[..., None]) -> None:
        """Receive one event type with positional arguments.

        ``up``/``down`` callbacks get ``(service)``, update callbacks get
        ``(new_service, old_service)``.
        """
        self._handlers[ServiceEventType(event_type)].append(callback)

    def off(self, event_type, callback: Callable[..., None]) -> None:
        handlers = self._handlers[ServiceEventType(event_type)]
        if callback in handlers:
            handlers.remove(callback)

    def listener_count(self, event_type=None) -> int:
        if event_type is None:
            return len(self._subscribers) + sum(
                len(handlers) for handlers in self._handlers.values()
            )
        return len(self._handlers[ServiceEventType(event_type)])

    def emit(self, event: ServiceEvent) -> None:
        """Deliver an event; a failing listener does not stop the others"""
        for callback in list(self._handlers[event.type]):
            try:
                callback(*event.args)
            except Exception as ex:
                logger.warning(f"Error in {event.type.value} listener: {ex}")

        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as ex:
                logger.warning(f"Error in event subscriber: {ex}")
