from datetime import datetime, timezone


def get_current_time() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def file_timestamp(moment: datetime | None = None) -> str:
    """ISO timestamp safe for use in file names."""
    return (moment or get_current_time()).isoformat().replace(":", "-")
