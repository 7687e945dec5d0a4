"""
DNS-SD Browser Configuration Schema

Configuration schema covering the browse request, the multicast transport,
periodic maintenance, logging and the status web interface.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .validators import (
    validate_boolean,
    validate_file_path,
    validate_ip_address,
    validate_log_level,
    validate_multicast_address,
    validate_port,
    validate_positive_float,
    validate_positive_int,
    validate_protocol,
    validate_service_type,
    validate_subtypes,
    validate_txt_pattern,
)


@dataclass
class BrowserConfig:
    """Browse request configuration section.

    ``type`` left unset selects the wildcard meta-query that enumerates every
    advertised service type.
    """

    type: Optional[str] = None
    name: Optional[str] = None
    protocol: str = "tcp"
    subtypes: List[str] = field(default_factory=list)
    txt: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        """Validate browser configuration."""
        if not validate_service_type(self.type):
            raise ValueError(f"Invalid service type: {self.type}")

        if self.name is not None and not isinstance(self.name, str):
            raise ValueError(f"Invalid instance name: {self.name}")

        if not validate_protocol(self.protocol):
            raise ValueError(f"Invalid protocol: {self.protocol}")

        if not validate_subtypes(self.subtypes):
            raise ValueError(f"Invalid subtypes: {self.subtypes}")

        if not validate_txt_pattern(self.txt):
            raise ValueError(f"Invalid TXT pattern: {self.txt}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BrowserConfig":
        return cls(
            type=data.get("type"),
            name=data.get("name"),
            protocol=data.get("protocol") or "tcp",
            subtypes=list(data.get("subtypes") or []),
            txt=dict(data["txt"]) if data.get("txt") is not None else None,
        )


@dataclass
class TransportConfig:
    """Multicast transport configuration section."""

    multicast_address: str = "224.0.0.251"
    port: int = 5353
    interface: str = "0.0.0.0"
    multicast_ttl: int = 255
    multicast_loopback: bool = True

    def __post_init__(self) -> None:
        """Validate transport configuration."""
        if not validate_multicast_address(self.multicast_address):
            raise ValueError(f"Invalid multicast address: {self.multicast_address}")

        if not validate_port(self.port):
            raise ValueError(f"Invalid port: {self.port}")

        if not validate_ip_address(self.interface):
            raise ValueError(f"Invalid interface address: {self.interface}")

        if not (isinstance(self.multicast_ttl, int) and 1 <= self.multicast_ttl <= 255):
            raise ValueError(
                f"Multicast TTL must be between 1 and 255: {self.multicast_ttl}"
            )

        if not validate_boolean(self.multicast_loopback):
            raise ValueError(
                f"Multicast loopback must be boolean: {self.multicast_loopback}"
            )


@dataclass
class DiscoveryConfig:
    """Periodic query refresh and expiry configuration section."""

    refresh_interval: float = 60.0
    expire_interval: float = 5.0

    def __post_init__(self) -> None:
        """Validate discovery configuration."""
        if not validate_positive_float(self.refresh_interval):
            raise ValueError(
                f"Refresh interval must be positive: {self.refresh_interval}"
            )

        if not validate_positive_float(self.expire_interval):
            raise ValueError(f"Expire interval must be positive: {self.expire_interval}")


@dataclass
class LoggingConfig:
    """Logging configuration section."""

    level: str = "INFO"
    format: str = "structured"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 3
    event_log_file: Optional[str] = None
    max_recent_events: int = 500

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        if not validate_log_level(self.level):
            raise ValueError(f"Invalid log level: {self.level}")

        if self.format not in ["simple", "structured"]:
            raise ValueError(f"Invalid log format: {self.format}")

        if not validate_file_path(self.file):
            raise ValueError(f"Invalid log file path: {self.file}")

        if not validate_positive_int(self.max_size_mb):
            raise ValueError(f"Max size MB must be positive: {self.max_size_mb}")

        if not validate_positive_int(self.backup_count):
            raise ValueError(f"Backup count must be positive: {self.backup_count}")

        if not validate_file_path(self.event_log_file):
            raise ValueError(f"Invalid event log file path: {self.event_log_file}")

        if not validate_positive_int(self.max_recent_events):
            raise ValueError(
                f"Max recent events must be positive: {self.max_recent_events}"
            )


@dataclass
class WebConfig:
    """Status web interface configuration section."""

    enabled: bool = False
    bind_address: str = "127.0.0.1"
    port: int = 8080

    def __post_init__(self) -> None:
        """Validate web configuration."""
        if not validate_boolean(self.enabled):
            raise ValueError(f"Web enabled must be boolean: {self.enabled}")

        if not validate_ip_address(self.bind_address):
            raise ValueError(f"Invalid bind address: {self.bind_address}")

        if not validate_port(self.port):
            raise ValueError(f"Invalid web port: {self.port}")


@dataclass
class AppConfig:
    """Main browser application configuration."""

    browser: BrowserConfig = field(default_factory=BrowserConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    web: WebConfig = field(default_factory=WebConfig)

    def __post_init__(self) -> None:
        """Validate the entire configuration."""
        if self.web.enabled and self.web.port == self.transport.port:
            raise ValueError("Web port and mDNS port cannot be the same")


def create_default_config() -> AppConfig:
    """Create a default configuration instance."""
    return AppConfig()
