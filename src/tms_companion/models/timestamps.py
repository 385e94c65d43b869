"""Timestamp type shared by the persisted records."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# Engines compare against naive datetime.now(); "...Z" input must not leak an offset
LocalDateTime = Annotated[datetime, AfterValidator(to_local_naive)]
