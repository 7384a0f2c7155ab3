from datetime import UTC, datetime

from sqlalchemy import DateTime, Text
from sqlmodel import Field, SQLModel


def utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class KeyValueEntry(SQLModel, table=True):
    """One serialized per-identity collection, e.g. ``appointments:<uid>``."""

    __tablename__ = "kv_entries"
    key: str = Field(primary_key=True, max_length=255)
    value: str = Field(sa_type=Text)
    # Naive UTC, matching the TIMESTAMP WITHOUT TIME ZONE column
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime())
