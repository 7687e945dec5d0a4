"""
Service Event Logging

This module records browser discovery events: structured log lines, an
optional JSON-lines event file, and a bounded in-memory history for the
status API.
"""

import json
import logging
import logging.handlers
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.browser import Browser
from ..core.events import ServiceEvent, ServiceEventType
from .logger import get_logger


class EventFileLogger:
    """Writes one JSON object per discovery event to a rotating file."""

    def __init__(self, log_file_path: str, max_size_mb: int = 10, backup_count: int = 3):
        """Initialize event file logger.

        Args:
            log_file_path: Path to the event log file
            max_size_mb: Rotation size
            backup_count: Rotated files to keep
        """
        self.log_file_path = log_file_path

        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        self.file_logger = logging.getLogger(f"service_events_file.{log_path.name}")
        self.file_logger.handlers.clear()
        self.file_logger.setLevel(logging.INFO)
        self.file_logger.propagate = False

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file_path,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        self.file_logger.addHandler(file_handler)

    def write(self, entry: Dict[str, Any]) -> None:
        self.file_logger.info(json.dumps(entry, separators=(",", ":")))

    def close(self) -> None:
        for handler in list(self.file_logger.handlers):
            handler.close()
            self.file_logger.removeHandler(handler)


def format_event(event: ServiceEvent) -> Dict[str, Any]:
    """Build the log entry for a discovery event"""
    service = event.service
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "event": event.type.value,
        "fqdn": service.fqdn,
        "name": service.name,
        "type": service.type,
        "protocol": service.protocol,
        "host": service.host,
        "port": service.port,
        "addresses": list(service.addresses),
    }

    if event.type == ServiceEventType.TXT_UPDATE:
        entry["txt"] = service.to_dict()["txt"]
        entry["previous_txt"] = event.previous.to_dict()["txt"]
    elif event.type == ServiceEventType.SRV_UPDATE:
        entry["previous_host"] = event.previous.host
        entry["previous_port"] = event.previous.port
        entry["previous_addresses"] = list(event.previous.addresses)

    return entry


class ServiceEventLogger:
    """Subscribes to a browser and logs every discovery event."""

    def __init__(
        self,
        event_log_file: Optional[str] = None,
        max_recent_events: int = 500,
        max_size_mb: int = 10,
        backup_count: int = 3,
    ):
        """Initialize event logger.

        Args:
            event_log_file: Optional JSON-lines file receiving every event
            max_recent_events: Events kept in memory for the status API
        """
        self.logger = get_logger("service_events")
        self.file_logger = (
            EventFileLogger(event_log_file, max_size_mb, backup_count)
            if event_log_file
            else None
        )
        self.recent_events = deque(maxlen=max_recent_events)
        self.counts = {event_type.value: 0 for event_type in ServiceEventType}
        self._browsers: List[Browser] = []

    def attach(self, browser: Browser) -> None:
        """Start logging the events of a browser"""
        browser.subscribe(self.handle_event)
        self._browsers.append(browser)

    def detach(self, browser: Browser) -> None:
        browser.unsubscribe(self.handle_event)
        if browser in self._browsers:
            self._browsers.remove(browser)

    def handle_event(self, event: ServiceEvent) -> None:
        entry = format_event(event)

        self.counts[event.type.value] += 1
        self.recent_events.appendleft(entry)

        fields = {key: value for key, value in entry.items() if key != "event"}
        self.logger.info(f"service {event.type.value}", **fields)

        if self.file_logger:
            self.file_logger.write(entry)

    def get_recent_events(self, limit: int = 100) -> List[Dict[str, Any]]:
        return list(self.recent_events)[:limit]

    def get_stats(self) -> Dict[str, Any]:
        return {
            "events": dict(self.counts),
            "recent_events": len(self.recent_events),
            "event_log_file": self.file_logger.log_file_path if self.file_logger else None,
        }

    def close(self) -> None:
        for browser in list(self._browsers):
            self.detach(browser)
        if self.file_logger:
            self.file_logger.close()
