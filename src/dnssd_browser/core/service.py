"""
Service Record

A discovered DNS-SD service instance assembled from PTR, SRV, TXT and
address records.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .records import Referrer


@dataclass
class ServiceRecord:
    """Discovered service instance, keyed by ``fqdn``"""

    name: Optional[str] = None
    fqdn: Optional[str] = None
    type: Optional[str] = None
    protocol: Optional[str] = None
    subtypes: List[str] = field(default_factory=list)
    host: Optional[str] = None
    port: Optional[int] = None
    addresses: List[str] = field(default_factory=list)
    txt: Dict[str, Any] = field(default_factory=dict)
    raw_txt: Optional[Tuple[bytes, ...]] = None
    ttl: int = 0
    last_seen: float = 0.0
    referrer: Optional[Referrer] = None

    @property
    def expires_at(self) -> Optional[float]:
        """Time after which the record is presumed stale, None if it never is"""
        if not self.ttl:
            return None
        return self.last_seen + self.ttl

    def is_expired(self, now: float) -> bool:
        expires_at = self.expires_at
        return expires_at is not None and expires_at < now

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation"""
        return {
            "name": self.name,
            "fqdn": self.fqdn,
            "type": self.type,
            "protocol": self.protocol,
            "subtypes": list(self.subtypes),
            "host": self.host,
            "port": self.port,
            "addresses": list(self.addresses),
            "txt": {
                key: value.hex() if isinstance(value, bytes) else value
                for key, value in self.txt.items()
            },
            "ttl": self.ttl,
            "last_seen": self.last_seen,
            "referrer": self.referrer.to_dict() if self.referrer else None,
        }
