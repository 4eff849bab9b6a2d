from datetime import UTC, datetime

# Sessions whose last_authenticated_at is set to this value are logged out.
EPOCH = datetime(1970, 1, 1)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column is stored in."""
    return datetime.now(UTC).replace(tzinfo=None)
