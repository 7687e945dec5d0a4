"""
Configuration Validators

This module provides validation functions for browser configuration parameters.
"""

import ipaddress
from pathlib import Path
from typing import Any, Optional

VALID_PROTOCOLS = ("tcp", "udp")


def validate_boolean(value) -> bool:
    """Validate boolean value."""
    return isinstance(value, bool)


def validate_file_path(path: Optional[str]) -> bool:
    """Validate optional file path format."""
    if path is None:
        return True
    if not path:
        return False

    try:
        Path(path)
        return True
    except (TypeError, ValueError):
        return False


def validate_log_level(level: str) -> bool:
    """Validate log level."""
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    return isinstance(level, str) and level.upper() in valid_levels


def validate_positive_float(value: float) -> bool:
    """Validate positive float."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def validate_positive_int(value: int) -> bool:
    """Validate positive integer."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_port(port: int) -> bool:
    """Validate port number."""
    return isinstance(port, int) and 1 <= port <= 65535


def validate_ip_address(address: str) -> bool:
    """Validate IP address format."""
    try:
        ipaddress.ip_address(address)
        return True
    except ValueError:
        return False


def validate_multicast_address(address: str) -> bool:
    """Validate IPv4 multicast group address."""
    try:
        return ipaddress.IPv4Address(address).is_multicast
    except ValueError:
        return False


def validate_protocol(protocol: str) -> bool:
    """Validate DNS-SD transport protocol label."""
    return protocol in VALID_PROTOCOLS


def validate_service_type(service_type: Optional[str]) -> bool:
    """Validate a service type such as ``http`` (None selects wildcard mode)."""
    if service_type is None:
        return True
    return isinstance(service_type, str) and "." not in service_type


def validate_subtypes(subtypes: Any) -> bool:
    """Validate list of subtype labels."""
    return isinstance(subtypes, list) and all(
        isinstance(subtype, str) and subtype for subtype in subtypes
    )


def validate_txt_pattern(txt: Any) -> bool:
    """Validate TXT attribute pattern (mapping of key to expected value)."""
    if txt is None:
        return True
    return isinstance(txt, dict) and all(isinstance(key, str) for key in txt)

