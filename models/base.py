from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite's CURRENT_TIMESTAMP stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
