"""
DNS-SD Browser Core Module

This module exports the discovery engine and the data model it works on.
"""

from .browser import Browser
from .events import EventDispatcher, ServiceEvent, ServiceEventType
from .filters import build_txt_query, service_matches
from .names import (
    SUBTYPE_MARKER,
    TLD,
    WILDCARD,
    ServiceType,
    dns_equal,
    query_name,
    to_string,
    to_type,
)
from .records import (
    AAAARecord,
    ARecord,
    PTRRecord,
    RecordType,
    Referrer,
    ResponsePacket,
    SRVRecord,
    TXTRecord,
)
from .service import ServiceRecord
from .source import RecordSource
from .txt import TXTCodec, txt_equal

__all__ = [
    # Discovery engine
    "Browser",
    "RecordSource",
    # Events
    "EventDispatcher",
    "ServiceEvent",
    "ServiceEventType",
    # Service model
    "ServiceRecord",
    # Records
    "RecordType",
    "PTRRecord",
    "SRVRecord",
    "TXTRecord",
    "ARecord",
    "AAAARecord",
    "Referrer",
    "ResponsePacket",
    # Names
    "ServiceType",
    "TLD",
    "WILDCARD",
    "SUBTYPE_MARKER",
    "dns_equal",
    "query_name",
    "to_string",
    "to_type",
    # TXT
    "TXTCodec",
    "txt_equal",
    "build_txt_query",
    "service_matches",
]
