from datetime import datetime
from typing import Optional

def local_now() -> datetime:
    """Wall-clock time in the deployment's single local zone (naive)."""
    return datetime.now()

def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware datetime to naive local time; naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
