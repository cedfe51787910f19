"""Domain entities for compile orchestration."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class CompileRequest:
    """A single compile submission, alive only for the duration of one request."""

    content: str
    confirmation_key: str | None = None
    submitted_at: datetime = field(default_factory=_utcnow)


@dataclass(slots=True, frozen=True)
class Workspace:
    """Directory tree owned exclusively by one in-flight compile request."""

    id: str
    root: Path
    build_dir: Path
    source: Path
