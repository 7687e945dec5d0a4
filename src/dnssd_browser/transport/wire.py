"""
mDNS Wire Helpers

This module bridges raw mDNS datagrams and dnspython:
- Query construction for multicast questions (id 0, no recursion)
- Clearing the mDNS cache-flush / unicast-response class bits so dnspython
  parses records as class IN
- Response parsing into the record model
"""

import struct
from typing import Optional, Tuple

import dns.flags
import dns.message
import dns.name
import dns.rdataclass

from ..core.records import RecordType, Referrer, ResponsePacket, packet_from_message

HEADER_LENGTH = 12
CLASS_MASK = 0x7FFF


def build_query(name: str, record_type: RecordType = RecordType.PTR) -> bytes:
    """Build the wire form of a multicast query"""
    query = dns.message.make_query(
        dns.name.from_text(name), int(record_type), dns.rdataclass.IN
    )
    query.id = 0
    query.flags = 0
    return query.to_wire()


def _skip_name(data: bytes, offset: int) -> int:
    """Return the offset following the encoded name at ``offset``"""
    while True:
        if offset >= len(data):
            raise ValueError("Invalid name: offset out of bounds")

        length = data[offset]
        if length == 0:
            return offset + 1
        elif (length & 0xC0) == 0xC0:
            # Compression pointer ends the name
            if offset + 1 >= len(data):
                raise ValueError("Invalid compression pointer")
            return offset + 2
        elif length & 0xC0:
            raise ValueError(f"Invalid label type at offset {offset}")
        else:
            offset += length + 1


def strip_class_flags(data: bytes) -> bytes:
    """Clear the top bit of every question and record class.

    mDNS reuses it as the unicast-response bit in questions and the
    cache-flush bit in records (RFC 6762 sections 5.4 and 10.2).
    """
    if len(data) < HEADER_LENGTH:
        raise ValueError("Invalid DNS message: too short")

    buffer = bytearray(data)
    qdcount, ancount, nscount, arcount = struct.unpack("!HHHH", data[4:12])
    offset = HEADER_LENGTH

    for _ in range(qdcount):
        offset = _skip_name(buffer, offset)
        if offset + 4 > len(buffer):
            raise ValueError("Invalid question: not enough data for type and class")
        (qclass,) = struct.unpack("!H", buffer[offset + 2 : offset + 4])
        struct.pack_into("!H", buffer, offset + 2, qclass & CLASS_MASK)
        offset += 4

    for _ in range(ancount + nscount + arcount):
        offset = _skip_name(buffer, offset)
        if offset + 10 > len(buffer):
            raise ValueError("Invalid resource record: not enough data for header")
        rtype, rclass, _ttl, rdlength = struct.unpack(
            "!HHIH", buffer[offset : offset + 10]
        )
        # OPT records carry the UDP payload size in the class field
        if rtype != 41:
            struct.pack_into("!H", buffer, offset + 2, rclass & CLASS_MASK)
        offset += 10 + rdlength
        if offset > len(buffer):
            raise ValueError("Invalid resource record: not enough data for rdata")

    return bytes(buffer)


def parse_response(
    data: bytes, referrer: Optional[Referrer] = None
) -> Optional[ResponsePacket]:
    """Parse a datagram into a response packet.

    Returns None for queries. Raises ValueError or dnspython exceptions for
    malformed data.
    """
    message = dns.message.from_wire(
        strip_class_flags(data), ignore_trailing=True, one_rr_per_rrset=True
    )
    if not message.flags & dns.flags.QR:
        return None
    return packet_from_message(message, referrer)


def referrer_from_addr(addr: Tuple) -> Referrer:
    """Build a referrer from an asyncio datagram address tuple"""
    family = "IPv6" if len(addr) > 2 else "IPv4"
    return Referrer(address=addr[0], port=addr[1], family=family)
