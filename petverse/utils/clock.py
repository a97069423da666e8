from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form MongoDB hands back on reads."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def epoch_millis() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)
