"""Time helpers shared by the token cache and the live feed."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(moment: datetime | None = None) -> str:
    """Render ``moment`` as ``2024-05-01T12:00:00.000Z`` (millisecond precision)."""
    moment = moment or utcnow()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = ["isoformat_utc", "utcnow"]
