"""
Multicast DNS Record Source

This module implements the mDNS transport:
- Async UDP endpoint joined to the mDNS multicast group
- Query transmission (queued until the socket is ready)
- Response parsing and fan-out to browser listeners
"""

import asyncio
import logging
import socket
import struct
import time
from typing import Any, Dict, List, Optional, Tuple

import dns.exception

from ..config.schema import TransportConfig
from ..core.records import RecordType
from ..core.source import RecordSource
from .wire import build_query, parse_response, referrer_from_addr

logger = logging.getLogger(__name__)


class MDNSProtocol(asyncio.DatagramProtocol):
    """Async UDP protocol handler for mDNS traffic"""

    def __init__(self, source: "MulticastRecordSource"):
        self.source = source
        self.transport = None

    def connection_made(self, transport):
        """Called when the multicast socket is ready"""
        self.transport = transport
        logger.info(
            f"mDNS listener bound on {transport.get_extra_info('sockname')}"
        )
        self.source._connection_made(transport)

    def datagram_received(self, data: bytes, addr: Tuple[str, int]):
        """Handle an incoming mDNS datagram"""
        self.source.handle_datagram(data, addr)

    def error_received(self, exc):
        """Handle UDP errors"""
        self.source._stats["errors"] += 1
        logger.error(f"mDNS protocol error: {exc}")

    def connection_lost(self, exc):
        if exc is not None:
            logger.warning(f"mDNS socket closed with error: {exc}")
        self.source._connection_lost()


class MulticastRecordSource(RecordSource):
    """Record source speaking mDNS over IPv4 multicast"""

    def __init__(self, config: Optional[TransportConfig] = None):
        super().__init__()
        self.config = config or TransportConfig()
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._pending: List[bytes] = []
        self._stats = {
            "start_time": 0.0,
            "packets_received": 0,
            "responses": 0,
            "queries_ignored": 0,
            "parse_errors": 0,
            "queries_sent": 0,
            "errors": 0,
        }

    @property
    def is_running(self) -> bool:
        return self._transport is not None

    def _create_socket(self) -> socket.socket:
        """Create a non-blocking UDP socket joined to the mDNS group"""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if hasattr(socket, "SO_REUSEPORT"):
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)

        sock.bind(("", self.config.port))

        mreq = struct.pack(
            "4s4s",
            socket.inet_aton(self.config.multicast_address),
            socket.inet_aton(self.config.interface),
        )
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
        sock.setsockopt(
            socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self.config.multicast_ttl
        )
        sock.setsockopt(
            socket.IPPROTO_IP,
            socket.IP_MULTICAST_LOOP,
            int(self.config.multicast_loopback),
        )
        if self.config.interface != "0.0.0.0":
            sock.setsockopt(
                socket.IPPROTO_IP,
                socket.IP_MULTICAST_IF,
                socket.inet_aton(self.config.interface),
            )

        sock.setblocking(False)
        return sock

    async def start(self) -> None:
        """Open the multicast endpoint"""
        if self._transport is not None:
            logger.warning("mDNS record source is already running")
            return

        self._stats["start_time"] = time.time()
        loop = asyncio.get_running_loop()
        sock = self._create_socket()
        try:
            await loop.create_datagram_endpoint(lambda: MDNSProtocol(self), sock=sock)
        except Exception as e:
            logger.error(f"Failed to open mDNS endpoint: {e}")
            sock.close()
            raise

        logger.info(
            f"mDNS record source started on "
            f"{self.config.multicast_address}:{self.config.port}"
        )

    async def stop(self) -> None:
        """Close the multicast endpoint"""
        if self._transport is None:
            return

        self._transport.close()
        self._transport = None
        self._pending.clear()
        logger.info("mDNS record source stopped")

    def query(self, name: str, record_type: RecordType = RecordType.PTR) -> None:
        """Send a multicast question, or queue it until the socket is ready"""
        data = build_query(name, record_type)
        if self._transport is None:
            self._pending.append(data)
            return
        self._send(data)

    def _send(self, data: bytes) -> None:
        try:
            self._transport.sendto(
                data, (self.config.multicast_address, self.config.port)
            )
            self._stats["queries_sent"] += 1
        except OSError as e:
            self._stats["errors"] += 1
            logger.error(f"Failed to send mDNS query: {e}")

    def _connection_made(self, transport) -> None:
        self._transport = transport
        pending, self._pending = self._pending, []
        for data in pending:
            self._send(data)

    def _connection_lost(self) -> None:
        self._transport = None

    def handle_datagram(self, data: bytes, addr: Tuple[str, int]) -> None:
        """Parse a datagram and dispatch it when it is a response"""
        self._stats["packets_received"] += 1

        try:
            packet = parse_response(data, referrer_from_addr(addr))
        except (ValueError, dns.exception.DNSException) as e:
            self._stats["parse_errors"] += 1
            logger.debug("Dropping malformed mDNS packet from %s: %s", addr[0], e)
            return

        if packet is None:
            self._stats["queries_ignored"] += 1
            return

        self._stats["responses"] += 1
        self._dispatch(packet)

    def get_stats(self) -> Dict[str, Any]:
        """Get transport statistics"""
        stats = dict(self._stats)
        stats["running"] = self.is_running
        stats["pending_queries"] = len(self._pending)
        stats["uptime_seconds"] = (
            time.time() - self._stats["start_time"] if self.is_running else 0
        )
        return stats
