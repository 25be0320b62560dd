"""Common recording data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence


@dataclass(slots=True, frozen=True)
class CorPair:
    """Signature of one authored line and its position in the file."""

    signature: str
    order: int


@dataclass(slots=True)
class OriginEntry:
    """One authored file snapshot as submitted by a client."""

    path: str
    language: str
    timestamp: int
    generated_by: str
    cors: Sequence[CorPair] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Wire representation sent to the recording endpoint."""
        return {
            "path": self.path,
            "language": self.language,
            "timestamp": self.timestamp,
            "generatedBy": self.generated_by,
            "cors": [{"signature": c.signature, "order": c.order} for c in self.cors],
        }


@dataclass(slots=True)
class RecordOutcome:
    ok: bool
    message: str


__all__ = ["CorPair", "OriginEntry", "RecordOutcome"]
