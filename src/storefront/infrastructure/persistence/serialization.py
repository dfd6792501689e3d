"""Field converters shared by the JSON repositories."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal


def iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def from_iso(value: str | None) -> datetime | None:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def dec(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def from_dec(value: str | None) -> Decimal | None:
    return Decimal(value) if value is not None else None
