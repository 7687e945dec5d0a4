"""
Service Name Codec

Conversion between structured service types and their dotted DNS-SD
representation (RFC 6763 section 7), plus DNS name comparison helpers.
"""

import string
from dataclasses import dataclass
from typing import List, Optional

TLD = "local"
WILDCARD = "_services._dns-sd._udp." + TLD
SUBTYPE_MARKER = "._sub"

_SUB_LABEL = "_sub"
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


@dataclass(frozen=True)
class ServiceType:
    """Structured service type, e.g. ``_printer._sub._http._tcp``"""

    name: Optional[str]
    protocol: Optional[str] = None
    subtype: Optional[str] = None


def _prefix(label: str) -> str:
    return label if label.startswith("_") else "_" + label


def _unprefix(label: str) -> str:
    return label[1:] if label.startswith("_") else label


def name_key(name: str) -> str:
    """Normalized form of a DNS name for comparisons and dictionary keys.

    Only ASCII letters are case-folded (RFC 6762 section 16).
    """
    return name.rstrip(".").translate(_ASCII_LOWER)


def dns_equal(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive DNS name equality"""
    if a is None or b is None:
        return a is b
    return name_key(a) == name_key(b)


def split_labels(name: str) -> List[str]:
    """Split a dotted name into labels, dropping a trailing root dot"""
    name = name.rstrip(".")
    return name.split(".") if name else []


def to_string(service_type: ServiceType) -> str:
    """Format a service type as ``[_subtype._sub.]_name._protocol``"""
    labels = []
    if service_type.subtype:
        labels.extend([_prefix(service_type.subtype), _SUB_LABEL])
    if service_type.name:
        labels.append(_prefix(service_type.name))
    if service_type.protocol:
        labels.append(_prefix(service_type.protocol))
    return ".".join(labels)


def to_type(text: str) -> ServiceType:
    """Parse a dotted service type.

    Accepts ``_http._tcp``, ``_http._tcp.local`` and subtype enumeration
    names such as ``_printer._sub._http._tcp.local``.
    """
    labels = split_labels(text)
    if labels and name_key(labels[-1]) == TLD:
        labels = labels[:-1]

    subtype = None
    lowered = [name_key(label) for label in labels]
    if _SUB_LABEL in lowered:
        index = lowered.index(_SUB_LABEL)
        if index > 0:
            subtype = _unprefix(".".join(labels[:index]))
        labels = labels[index + 1 :]

    return ServiceType(
        name=_unprefix(labels[0]) if labels else None,
        protocol=_unprefix(labels[1]) if len(labels) > 1 else None,
        subtype=subtype,
    )


def query_name(
    service_type: Optional[str],
    protocol: str = "tcp",
    instance_name: Optional[str] = None,
) -> Optional[str]:
    """Derive the PTR query name for a browse request.

    Returns ``WILDCARD`` when no type is given and ``None`` when the type is
    present but empty, which leaves the browser disabled.
    """
    if service_type is None:
        return WILDCARD
    if not service_type:
        return None

    name = to_string(ServiceType(name=service_type, protocol=protocol or "tcp"))
    name = f"{name}.{TLD}"
    if instance_name:
        name = f"{instance_name}.{name}"
    return name
