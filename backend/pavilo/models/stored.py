"""SQLModel table backing the key/value storage adapter."""
from datetime import datetime
from sqlmodel import SQLModel, Field

from pavilo.models.records import utcnow


class StoredValue(SQLModel, table=True):
    """One named collection, held as serialized JSON text."""

    __tablename__ = "stored_values"

    key: str = Field(primary_key=True)
    value: str
    updated_at: datetime = Field(default_factory=utcnow)
