"""
KV Entry Model
==============

One row per storage key. The value is opaque text: a base64 sealed blob
for current records, raw JSON for legacy ones.
"""

from datetime import datetime, timezone

from sqlalchemy import Text
from sqlmodel import Field, SQLModel


class KVEntry(SQLModel, table=True):
    __tablename__ = "kv_entries"

    key: str = Field(primary_key=True, max_length=512)
    value: str = Field(sa_type=Text)
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
