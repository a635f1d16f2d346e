"""Column value types that hold raw JSON documents."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

_JSON_WHITESPACE = b" \t\r\n"


def _validated(document: bytes) -> bytes:
    """Return ``document`` without surrounding whitespace once it parses as JSON."""
    json.loads(document)
    return document.strip(_JSON_WHITESPACE)


@dataclass
class JSON:
    """Raw JSON text stored in a character column.

    Values read from the database must arrive as ``str``.
    """

    raw: bytes = b""

    def __post_init__(self) -> None:
        if isinstance(self.raw, str):
            self.raw = self.raw.encode("utf-8")
        else:
            self.raw = bytes(self.raw)

    def value(self) -> Optional[bytes]:
        """Return the value to store: the raw document, or None when empty."""
        if not self.raw:
            return None
        return self.raw

    def scan(self, value: Any) -> None:
        """Load a document read from the database.

        Raises TypeError for a non-string value and ValueError for invalid JSON.
        """
        if not isinstance(value, str):
            raise TypeError(f"Failed to unmarshal JSONB value (strcast):{value}")
        self.raw = _validated(value.encode("utf-8"))


@dataclass
class Jsonb:
    """Raw JSON document stored in a PostgreSQL ``jsonb`` column.

    Values read from the database must arrive as bytes.
    """

    raw: bytes = b""

    def __post_init__(self) -> None:
        if isinstance(self.raw, str):
            self.raw = self.raw.encode("utf-8")
        else:
            self.raw = bytes(self.raw)

    def value(self) -> Optional[bytes]:
        """Return the value to store: the raw document, or None when empty."""
        if not self.raw:
            return None
        return self.raw

    def scan(self, value: Any) -> None:
        """Load a document read from the database.

        Raises TypeError for a non-bytes value and ValueError for invalid JSON.
        """
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"Failed to unmarshal JSONB value:{value}")
        self.raw = _validated(bytes(value))