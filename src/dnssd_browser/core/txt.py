"""
TXT Record Codec

Decodes DNS-SD TXT character-strings (RFC 6763 section 6) into key/value
mappings and back.
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

TXTValue = Union[str, bytes, bool]


class TXTCodec:
    """Key/value codec for TXT record payloads"""

    def __init__(self, binary: bool = False):
        """
        Args:
            binary: Keep values as raw bytes instead of decoding them as UTF-8
        """
        self.binary = binary

    def decode(self, item: bytes) -> Dict[str, TXTValue]:
        """Decode a single ``key=value`` character-string"""
        if not item:
            return {}

        key, sep, value = item.partition(b"=")
        if not key:
            # Missing key, RFC 6763 section 6.4 says ignore it
            return {}

        name = key.decode("utf-8", errors="replace").lower()
        if not sep:
            return {name: True}
        if self.binary:
            return {name: bytes(value)}
        return {name: value.decode("utf-8", errors="replace")}

    def decode_all(self, items: Optional[Iterable[bytes]]) -> Dict[str, TXTValue]:
        """Decode every character-string of a TXT record.

        Only the first occurrence of a key is kept.
        """
        data: Dict[str, TXTValue] = {}
        for item in items or ():
            for key, value in self.decode(item).items():
                data.setdefault(key, value)
        return data

    def encode(self, data: Optional[Mapping[str, Any]] = None) -> Tuple[bytes, ...]:
        """Encode a mapping into TXT character-strings"""
        items = []
        for key, value in (data or {}).items():
            if value is True:
                items.append(key.encode("utf-8"))
                continue
            if isinstance(value, bytes):
                items.append(key.encode("utf-8") + b"=" + value)
            else:
                items.append(f"{key}={value}".encode("utf-8"))
        return tuple(items)


def txt_equal(a: Optional[Mapping[str, Any]], b: Optional[Mapping[str, Any]]) -> bool:
    """Compare two decoded TXT mappings, ignoring key order"""
    return dict(a or {}) == dict(b or {})
