"""
mDNS Transport Module

Record sources that deliver response packets to the browser.
"""

from ..core.source import RecordSource
from .multicast import MDNSProtocol, MulticastRecordSource
from .wire import build_query, parse_response

__all__ = [
    "RecordSource",
    "MulticastRecordSource",
    "MDNSProtocol",
    "build_query",
    "parse_response",
]
