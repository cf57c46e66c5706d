from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Caller identity decoded from the bearer token."""

    subject_id: int | None
    username: str | None = None
