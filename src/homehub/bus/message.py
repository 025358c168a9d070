"""Bus message envelope and payload encoding."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Message:
    """A message as delivered to subscribers."""

    topic: str
    payload: bytes
    received_at: datetime = field(default_factory=_utcnow)

    def json(self) -> Any:
        """Parse the payload as JSON (raises ``ValueError`` when malformed)."""
        return json.loads(self.payload)

    def text(self) -> str:
        return self.payload.decode("utf-8", errors="replace")


def encode_payload(payload: Any) -> bytes:
    """Encode a publish payload to bytes.

    Bytes pass through, strings are UTF-8 encoded, pydantic models use their
    wire form, and everything else is serialised as compact JSON.
    """
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    if isinstance(payload, str):
        return payload.encode("utf-8")
    if isinstance(payload, BaseModel):
        to_payload = getattr(payload, "to_payload", None)
        value = to_payload() if callable(to_payload) else payload.model_dump(mode="json", exclude_none=True)
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
