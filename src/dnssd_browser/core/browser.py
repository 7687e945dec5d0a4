"""
DNS-SD Browser

The discovery engine: queries for PTR records of a service type, correlates
the PTR/SRV/TXT/A/AAAA records of each response into service records and
reports changes to the known service set.

If no type is given, the wildcard meta-query is used and every service type
announced on the network is browsed as it is discovered.

The browser keeps a list of online services which starts out empty. Each new
service is added and reported with an ``up`` event. Services withdrawn by a
goodbye announcement, rejected by a TXT update, or whose TTL lapses are
removed and reported with a ``down`` event. Changes to connection details
and TXT metadata are reported as ``srv-update`` and ``txt-update``.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

from ..config.schema import BrowserConfig
from .events import EventDispatcher, ServiceEvent, ServiceEventType
from .filters import build_txt_query, service_matches
from .names import (
    SUBTYPE_MARKER,
    dns_equal,
    name_key,
    query_name,
    split_labels,
    to_type,
)
from .records import RecordType, ResponsePacket
from .service import ServiceRecord
from .source import RecordSource
from .txt import TXTCodec, txt_equal

logger = logging.getLogger(__name__)

ServiceCallback = Callable[[ServiceRecord], None]


class Browser:
    """Discovery engine for one service type or the wildcard meta-query"""

    def __init__(
        self,
        record_source: RecordSource,
        config: Union[BrowserConfig, Mapping[str, Any], ServiceCallback, None] = None,
        on_up: Optional[ServiceCallback] = None,
        *,
        clock: Callable[[], float] = time.time,
        autostart: bool = True,
    ):
        """
        Args:
            record_source: Transport used to query and receive responses
            config: Browse configuration; a callable here is taken as ``on_up``
            on_up: Convenience callback for ``up`` events
            clock: Time source in seconds, used for ``last_seen`` and expiry
            autostart: Start listening immediately
        """
        if callable(config) and on_up is None:
            on_up, config = config, None

        disabled = False
        if config is None:
            config = BrowserConfig()
        elif not isinstance(config, BrowserConfig):
            try:
                config = BrowserConfig.from_dict(config)
            except (TypeError, ValueError) as e:
                logger.warning("Invalid browser configuration, browser disabled: %s", e)
                config, disabled = BrowserConfig(), True

        self.config = config
        self.record_source = record_source
        self.wildcard = config.type is None and not disabled
        self.name = (
            None if disabled else query_name(config.type, config.protocol, config.name)
        )

        txt = config.txt or {}
        self.txt_codec = TXTCodec(binary=bool(txt.get("binary")))
        self.txt_query = build_txt_query(config.txt)

        self.events = EventDispatcher()
        self.version = 0

        self._clock = clock
        self._lock = threading.RLock()
        self._listening = False
        self._services: "OrderedDict[str, ServiceRecord]" = OrderedDict()
        # Names processed for each packet, keyed by normalized name
        self._tracked: Dict[str, str] = {}

        self._stats = {
            "packets_handled": 0,
            "queries_sent": 0,
            "goodbyes": 0,
            "expired": 0,
            "events": {event_type.value: 0 for event_type in ServiceEventType},
        }

        if on_up is not None:
            self.events.on(ServiceEventType.UP, on_up)

        if autostart:
            self.start()

    # Listener registration

    def on(self, event_type, callback: Callable[..., None]) -> None:
        self.events.on(event_type, callback)

    def off(self, event_type, callback: Callable[..., None]) -> None:
        self.events.off(event_type, callback)

    def subscribe(self, callback: Callable[[ServiceEvent], None]) -> None:
        self.events.subscribe(callback)

    def unsubscribe(self, callback: Callable[[ServiceEvent], None]) -> None:
        self.events.unsubscribe(callback)

    # Lifecycle

    @property
    def is_listening(self) -> bool:
        return self._listening

    def start(self) -> None:
        """Start looking for matching services"""
        with self._lock:
            if self._listening or self.name is None:
                return

            if not self.wildcard:
                self._track(self.name)

            self.record_source.add_listener(self.handle_packet)
            self._listening = True
            logger.debug("Browser started for %s", self.name)
            self.refresh_query()

    def stop(self) -> None:
        """Stop looking for matching services; known services are kept"""
        with self._lock:
            if not self._listening:
                return

            self.record_source.remove_listener(self.handle_packet)
            self._listening = False
            self._tracked.clear()
            logger.debug("Browser stopped for %s", self.name)

    def refresh_query(self) -> None:
        """Broadcast the PTR query again"""
        with self._lock:
            if self.name is None:
                return
            self._query(self.name)

    update = refresh_query

    def expire(self) -> List[ServiceRecord]:
        """Remove services whose TTL lapsed and report them as down.

        All expired services are removed before any event is emitted, so
        listeners see the final state of this pass.
        """
        with self._lock:
            now = self._clock()
            expired = [s for s in self._services.values() if s.is_expired(now)]
            if not expired:
                return []

            for service in expired:
                del self._services[name_key(service.fqdn)]
            self.version += 1
            self._stats["expired"] += len(expired)

            for service in expired:
                logger.debug("Service expired: %s", service.fqdn)
                self._emit(ServiceEventType.DOWN, service)
            return expired

    # Read access

    @property
    def services(self) -> List[ServiceRecord]:
        """Snapshot of the services currently known to be online"""
        with self._lock:
            return list(self._services.values())

    def get_service(self, fqdn: str) -> Optional[ServiceRecord]:
        with self._lock:
            return self._services.get(name_key(fqdn))

    @property
    def tracked_names(self) -> List[str]:
        with self._lock:
            return list(self._tracked.values())

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "query_name": self.name,
                "wildcard": self.wildcard,
                "subtypes": list(self.config.subtypes),
                "listening": self._listening,
                "services": len(self._services),
                "version": self.version,
                "tracked_names": list(self._tracked.values()),
                "packets_handled": self._stats["packets_handled"],
                "queries_sent": self._stats["queries_sent"],
                "goodbyes": self._stats["goodbyes"],
                "expired": self._stats["expired"],
                "events": dict(self._stats["events"]),
            }

    # Packet handling

    def handle_packet(self, packet: ResponsePacket) -> None:
        """Process one response packet from the record source"""
        with self._lock:
            if not self._listening:
                return

            self._stats["packets_handled"] += 1

            if self.wildcard:
                self._discover_types(packet)

            receive_time = self._clock()

            for name in list(self._tracked.values()):
                # Goodbyes first so a restart within one burst is not
                # reported as a duplicate "up"
                for fqdn in self._goodbyes(name, packet):
                    self._stats["goodbyes"] += 1
                    self._remove_service(fqdn)

                for service in self._build_services_for(name, packet, receive_time):
                    existing = self._services.get(name_key(service.fqdn))
                    if existing is None:
                        self._add_service(service)
                        continue

                    existing.last_seen = service.last_seen
                    self._update_service_srv(existing, service)
                    self._update_service_txt(existing, service)

    def _discover_types(self, packet: ResponsePacket) -> None:
        """Track and query every service type announced by a meta PTR"""
        for answer in packet.answers:
            if answer.rtype != RecordType.PTR or not dns_equal(answer.name, self.name):
                continue
            if name_key(answer.data) in self._tracked:
                continue

            self._track(answer.data)
            logger.debug("Discovered service type %s", answer.data)
            self._query(answer.data)

    def _track(self, name: str) -> None:
        self._tracked[name_key(name)] = name

    def _query(self, name: str) -> None:
        self._stats["queries_sent"] += 1
        self.record_source.query(name, RecordType.PTR)

    def _goodbyes(self, name: str, packet: ResponsePacket) -> List[str]:
        """Names withdrawn by PTR records with a TTL of 0 (RFC 6762 section 10.1)"""
        return [
            rr.data
            for rr in packet.records
            if rr.rtype == RecordType.PTR and rr.ttl == 0 and dns_equal(rr.name, name)
        ]

    def _build_services_for(
        self, name: str, packet: ResponsePacket, receive_time: float
    ) -> Iterator[ServiceRecord]:
        """Yield SRV-complete service candidates for a tracked name.

        Subtypes come from additional PTR records pointing at the same
        instance (RFC 6763 section 7.1); one subtype per record, repeated
        records are kept as they are.
        """
        records = [rr for rr in packet.records if rr.ttl > 0]

        ptrs = [rr for rr in records if rr.rtype == RecordType.PTR]
        srvs = [rr for rr in records if rr.rtype == RecordType.SRV]
        txts = [rr for rr in records if rr.rtype == RecordType.TXT]
        addresses = [
            rr for rr in records if rr.rtype in (RecordType.A, RecordType.AAAA)
        ]

        for ptr in ptrs:
            if not dns_equal(ptr.name, name):
                continue

            service = ServiceRecord(ttl=ptr.ttl, last_seen=receive_time)

            for rr in ptrs:
                if dns_equal(rr.data, ptr.data) and SUBTYPE_MARKER in name_key(rr.name):
                    service.subtypes.append(to_type(rr.name).subtype)

            srv = None
            for rr in srvs:
                if dns_equal(rr.name, ptr.data):
                    srv = rr
            txt = None
            for rr in txts:
                if dns_equal(rr.name, ptr.data):
                    txt = rr

            if srv is None:
                logger.debug("No SRV record for %s, skipping", ptr.data)
                continue

            labels = split_labels(srv.name)
            if not labels:
                logger.debug("SRV for %r has no instance label, skipping", ptr.data)
                continue

            types = to_type(".".join(labels[1:-1]))
            service.name = labels[0]
            service.fqdn = srv.name
            service.host = srv.target
            service.port = srv.port
            service.type = types.name
            service.protocol = types.protocol
            service.referrer = packet.referrer

            if txt is not None:
                service.raw_txt = txt.data
                service.txt = self.txt_codec.decode_all(txt.data)

            service.addresses = [
                rr.address for rr in addresses if dns_equal(rr.name, service.host)
            ]

            yield service

    # Known service set

    def _add_service(self, service: ServiceRecord) -> None:
        if not service_matches(service.txt, self.txt_query):
            logger.debug("Service %s rejected by TXT query", service.fqdn)
            return

        self._services[name_key(service.fqdn)] = service
        self.version += 1
        self._emit(ServiceEventType.UP, service)

    def _update_service_srv(
        self, existing: ServiceRecord, service: ServiceRecord
    ) -> None:
        """Replace the service if any SRV-derived property changed"""
        if (
            existing.name == service.name
            and existing.host == service.host
            and existing.port == service.port
            and existing.type == service.type
            and existing.protocol == service.protocol
            and set(existing.addresses) == set(service.addresses)
        ):
            return

        self._replace_service(service)
        self._emit(ServiceEventType.SRV_UPDATE, service, existing)

    def _update_service_txt(
        self, existing: ServiceRecord, service: ServiceRecord
    ) -> None:
        """Replace the service if its TXT content changed"""
        if txt_equal(service.txt, existing.txt):
            return

        # A service no longer matching the TXT query goes down
        if not service_matches(service.txt, self.txt_query):
            self._remove_service(service.fqdn)
            return

        self._replace_service(service)
        self._emit(ServiceEventType.TXT_UPDATE, service, existing)

    def _replace_service(self, service: ServiceRecord) -> None:
        key = name_key(service.fqdn)
        if key in self._services:
            self._services[key] = service
            self.version += 1

    def _remove_service(self, fqdn: str) -> Optional[ServiceRecord]:
        service = self._services.pop(name_key(fqdn), None)
        if service is None:
            return None

        self.version += 1
        self._emit(ServiceEventType.DOWN, service)
        return service

    def _emit(
        self,
        event_type: ServiceEventType,
        service: ServiceRecord,
        previous: Optional[ServiceRecord] = None,
    ) -> None:
        self._stats["events"][event_type.value] += 1
        self.events.emit(ServiceEvent(event_type, service, previous))
