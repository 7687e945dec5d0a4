"""
DNS Resource Record Model

This module defines the record types consumed by the discovery engine:
- A closed set of record dataclasses (PTR, SRV, TXT, A, AAAA)
- The response packet bundle delivered by a record source
- Conversion from dnspython messages into the record model
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Tuple, Union

import dns.message
import dns.name
import dns.rrset


class RecordType(IntEnum):
    """DNS Record Types used by DNS-SD"""

    A = 1
    PTR = 12
    TXT = 16
    AAAA = 28
    SRV = 33


@dataclass(frozen=True)
class PTRRecord:
    """PTR record: ``name`` points at the instance or type named by ``data``"""

    name: str
    ttl: int
    data: str
    rtype: RecordType = field(default=RecordType.PTR, init=False)


@dataclass(frozen=True)
class SRVRecord:
    """SRV record: connection target for a service instance"""

    name: str
    ttl: int
    target: str
    port: int
    priority: int = 0
    weight: int = 0
    rtype: RecordType = field(default=RecordType.SRV, init=False)


@dataclass(frozen=True)
class TXTRecord:
    """TXT record: raw character-strings, decoded later by the TXT codec"""

    name: str
    ttl: int
    data: Tuple[bytes, ...] = ()
    rtype: RecordType = field(default=RecordType.TXT, init=False)


@dataclass(frozen=True)
class ARecord:
    """A record"""

    name: str
    ttl: int
    address: str
    rtype: RecordType = field(default=RecordType.A, init=False)


@dataclass(frozen=True)
class AAAARecord:
    """AAAA record"""

    name: str
    ttl: int
    address: str
    rtype: RecordType = field(default=RecordType.AAAA, init=False)


ResourceRecord = Union[PTRRecord, SRVRecord, TXTRecord, ARecord, AAAARecord]


@dataclass(frozen=True)
class Referrer:
    """Transport-level origin of a response packet"""

    address: str
    port: int
    family: str = "IPv4"

    def to_dict(self) -> Dict[str, Union[str, int]]:
        return {"address": self.address, "port": self.port, "family": self.family}


@dataclass
class ResponsePacket:
    """One inbound DNS response: answer and additional sections"""

    answers: List[ResourceRecord] = field(default_factory=list)
    additionals: List[ResourceRecord] = field(default_factory=list)
    referrer: Optional[Referrer] = None

    @property
    def records(self) -> List[ResourceRecord]:
        """All records, answers first"""
        return list(self.answers) + list(self.additionals)


def name_to_text(name: dns.name.Name) -> str:
    """Render a dnspython name as dotted text without the root dot.

    Labels are decoded as UTF-8 and not escaped, so instance names such as
    ``My Printer`` keep their spaces.
    """
    return ".".join(
        label.decode("utf-8", errors="replace") for label in name.labels if label
    )


def _convert_ptr(name: str, ttl: int, rdata) -> ResourceRecord:
    return PTRRecord(name=name, ttl=ttl, data=name_to_text(rdata.target))


def _convert_srv(name: str, ttl: int, rdata) -> ResourceRecord:
    return SRVRecord(
        name=name,
        ttl=ttl,
        target=name_to_text(rdata.target),
        port=rdata.port,
        priority=rdata.priority,
        weight=rdata.weight,
    )


def _convert_txt(name: str, ttl: int, rdata) -> ResourceRecord:
    return TXTRecord(name=name, ttl=ttl, data=tuple(rdata.strings))


def _convert_a(name: str, ttl: int, rdata) -> ResourceRecord:
    return ARecord(name=name, ttl=ttl, address=rdata.address)


def _convert_aaaa(name: str, ttl: int, rdata) -> ResourceRecord:
    return AAAARecord(name=name, ttl=ttl, address=rdata.address)


_CONVERTERS: Dict[int, Callable[[str, int, object], ResourceRecord]] = {
    RecordType.PTR: _convert_ptr,
    RecordType.SRV: _convert_srv,
    RecordType.TXT: _convert_txt,
    RecordType.A: _convert_a,
    RecordType.AAAA: _convert_aaaa,
}


def records_from_rrsets(rrsets: List[dns.rrset.RRset]) -> List[ResourceRecord]:
    """Flatten dnspython rrsets into records, skipping unsupported kinds"""
    records: List[ResourceRecord] = []
    for rrset in rrsets:
        converter = _CONVERTERS.get(rrset.rdtype)
        if converter is None:
            continue
        name = name_to_text(rrset.name)
        for rdata in rrset:
            records.append(converter(name, rrset.ttl, rdata))
    return records


def packet_from_message(
    msg: dns.message.Message, referrer: Optional[Referrer] = None
) -> ResponsePacket:
    """Convert a parsed dnspython message into a response packet"""
    return ResponsePacket(
        answers=records_from_rrsets(msg.answer),
        additionals=records_from_rrsets(msg.additional),
        referrer=referrer,
    )
