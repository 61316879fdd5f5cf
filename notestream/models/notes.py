"""Data models for scored segments and emitted notes."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class ContentQuality:
    """Result of scoring a transcript segment for informational value."""
    score: float  # 0.0 to 1.0
    is_noteworthy: bool
    reason: str


def _generate_note_id() -> str:
    return f"note_{uuid.uuid4().hex[:12]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Note:
    """A note accepted by the pipeline.

    Position, color and any other layout concerns belong to whoever
    receives the note; ownership passes to them on emission.
    """
    content: str
    raw_transcript: str = ""
    id: str = field(default_factory=_generate_note_id)
    created_at: datetime = field(default_factory=_utcnow)
