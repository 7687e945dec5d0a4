"""Shared fixtures: an in-memory record source and record builders."""

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from dnssd_browser.core.browser import Browser
from dnssd_browser.core.records import (
    AAAARecord,
    ARecord,
    PTRRecord,
    RecordType,
    Referrer,
    ResponsePacket,
    SRVRecord,
    TXTRecord,
)
from dnssd_browser.core.source import RecordSource

REFERRER = Referrer(address="192.168.1.20", port=5353)


class FakeRecordSource(RecordSource):
    """Record source that records queries and replays packets on demand"""

    def __init__(self):
        super().__init__()
        self.queries: List[Tuple[str, RecordType]] = []

    def query(self, name: str, record_type: RecordType = RecordType.PTR) -> None:
        self.queries.append((name, record_type))

    def deliver(self, packet: ResponsePacket) -> None:
        self._dispatch(packet)

    @property
    def query_names(self) -> List[str]:
        return [name for name, _ in self.queries]


class Clock:
    """Manually advanced time source"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def announcement(
    instance: str = "myprinter",
    service_type: str = "_http._tcp.local",
    host: str = "printer.local",
    port: int = 80,
    addresses: Sequence[str] = ("192.168.1.5",),
    txt: Optional[Sequence[bytes]] = (b"path=/",),
    ttl: int = 120,
    subtypes: Sequence[str] = (),
    referrer: Optional[Referrer] = REFERRER,
) -> ResponsePacket:
    """Build a typical DNS-SD response for one service instance"""
    fqdn = f"{instance}.{service_type}"
    answers = [PTRRecord(name=service_type, ttl=ttl, data=fqdn)]
    for subtype in subtypes:
        answers.append(
            PTRRecord(name=f"_{subtype}._sub.{service_type}", ttl=ttl, data=fqdn)
        )

    additionals = [SRVRecord(name=fqdn, ttl=ttl, target=host, port=port)]
    if txt is not None:
        additionals.append(TXTRecord(name=fqdn, ttl=ttl, data=tuple(txt)))
    for address in addresses:
        if ":" in address:
            additionals.append(AAAARecord(name=host, ttl=ttl, address=address))
        else:
            additionals.append(ARecord(name=host, ttl=ttl, address=address))

    return ResponsePacket(answers=answers, additionals=additionals, referrer=referrer)


def goodbye(
    instance: str = "myprinter", service_type: str = "_http._tcp.local"
) -> ResponsePacket:
    """Build a goodbye announcement (PTR with a TTL of 0)"""
    return ResponsePacket(
        answers=[
            PTRRecord(name=service_type, ttl=0, data=f"{instance}.{service_type}")
        ],
        referrer=REFERRER,
    )


def type_announcement(*service_types: str) -> ResponsePacket:
    """Build a response to the service type enumeration meta-query"""
    return ResponsePacket(
        answers=[
            PTRRecord(name="_services._dns-sd._udp.local", ttl=4500, data=t)
            for t in service_types
        ],
        referrer=REFERRER,
    )


class EventRecorder:
    """Collects browser events as (type, args) tuples"""

    def __init__(self):
        self.events: List[Tuple[str, tuple]] = []

    def __call__(self, event) -> None:
        self.events.append((event.type.value, event.args))

    @property
    def types(self) -> List[str]:
        return [event_type for event_type, _ in self.events]

    def of(self, event_type: str) -> List[tuple]:
        return [args for t, args in self.events if t == event_type]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def source():
    return FakeRecordSource()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def make_browser(source, clock, recorder):
    """Factory for browsers wired to the fake source, clock and recorder"""

    def factory(config: Optional[Dict] = None, **kwargs):
        browser = Browser(source, config, clock=clock, **kwargs)
        browser.subscribe(recorder)
        return browser

    return factory
