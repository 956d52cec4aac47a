"""
Clock - Explicit time source for the engines.

Engines never read the ambient clock. Every time-dependent operation
receives ``now`` from its caller, so tests can pin time exactly.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Annotated, Callable

from pydantic import AfterValidator


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Persisted timestamps are reconstructed through this type on load.
Timestamp = Annotated[datetime, AfterValidator(as_utc)]

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
