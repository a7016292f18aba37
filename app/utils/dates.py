from datetime import datetime, timezone


def utcnow() -> datetime:
    # naive UTC, the same shape pymongo hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)
