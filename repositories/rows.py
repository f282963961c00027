"""
Shared helpers for Supabase row (de)serialization and query execution.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from postgrest.exceptions import APIError

from domain.time import require_utc_timestamp


def execute(query: Any, action: str) -> List[Mapping[str, Any]]:
    """
    Execute a PostgREST query and return its rows.

    Raises:
        RuntimeError: "Failed to <action>: <detail>" on any storage error
    """

    try:
        response = query.execute()
    except APIError as e:
        detail = getattr(e, "message", None) or str(e)
        raise RuntimeError(f"Failed to {action}: {detail}") from e

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")

    return list(getattr(response, "data", None) or [])


def to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_optional_utc_datetime(value: Any) -> Optional[datetime]:
    return parse_utc_datetime(value) if value else None


def parse_date(value: Any) -> date:
    """Parse a Postgres `date` column (ISO string) into a date."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Unsupported date type: {type(value)!r}")


def parse_optional_date(value: Any) -> Optional[date]:
    return parse_date(value) if value else None


def parse_decimal(value: Any) -> Decimal:
    """Numeric columns arrive as int, float or str; go through str to keep cents exact."""

    return Decimal(str(value))
