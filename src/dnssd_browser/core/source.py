"""
Record Source Contract

A record source sends DNS queries and pushes every received response packet
to its registered listeners.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List

from .records import RecordType, ResponsePacket

logger = logging.getLogger(__name__)

PacketListener = Callable[[ResponsePacket], None]


class RecordSource(ABC):
    """Base class for transports feeding the browser"""

    def __init__(self):
        self._listeners: List[PacketListener] = []

    @abstractmethod
    def query(self, name: str, record_type: RecordType = RecordType.PTR) -> None:
        """Send a query; fire-and-forget"""

    def add_listener(self, callback: PacketListener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: PacketListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _dispatch(self, packet: ResponsePacket) -> None:
        """Hand a packet to every listener"""
        for callback in list(self._listeners):
            try:
                callback(packet)
            except Exception as e:
                logger.error(f"Error in response listener: {e}")
