from datetime import datetime, date, timezone


def now_utc() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert others."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def iso_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")


def parse_iso(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(raw))


def fmt_issued_date(value: datetime | date | str) -> str:
    """Long US-style date used on certificates, e.g. ``March 4, 2025``."""
    if isinstance(value, str):
        value = parse_iso(value)
    if isinstance(value, datetime):
        value = as_utc(value).date()
    return f"{value.strftime('%B')} {value.day}, {value.year}"
