"""Publish-time policies: what ``published_at`` value, if any, a backend gets."""

from __future__ import annotations

from datetime import datetime, timezone


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    utc = dt.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def future_only(publish_date: datetime | None, now: datetime) -> str | None:
    """Only schedule dates strictly in the future; otherwise publish now.

    Backends of this kind reject a past ``published_at``.
    """
    if publish_date is None or publish_date <= now:
        return None
    return format_timestamp(publish_date)


def pass_through(publish_date: datetime | None, now: datetime) -> str | None:
    """Send whatever date the article carries, past or future."""
    if publish_date is None:
        return None
    return format_timestamp(publish_date)
