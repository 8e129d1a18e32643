"""SQLAlchemy ORM models for click logging.

Data Model Layout
=================
::
    clicks table
    ├─ id (SERIAL PRIMARY KEY)
    ├─ target_url (TEXT NOT NULL)
    ├─ asin (VARCHAR(10), INDEXED, NULL)
    ├─ tag (VARCHAR(255) NOT NULL)
    ├─ src (VARCHAR(120) NULL)
    ├─ created_by (VARCHAR(200) NULL)
    ├─ created_at (VARCHAR(80) NULL)   caller-supplied label, not a DB timestamp
    ├─ ip (VARCHAR(64) NULL)
    ├─ user_agent (TEXT NULL)
    └─ ts (TIMESTAMPTZ, DEFAULT NOW())

Key Behaviours
===============
- Rows are insert-only; nothing in the gateway updates or deletes them.
- ``ts`` is taken from the record and falls back to the server clock.

Classes:
    ClickLog:  One persisted click.
"""

import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from golink.database import Base
from golink.schemas import ClickRecord

__all__ = ["ClickLog"]


class ClickLog(Base):
    __tablename__ = "clicks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    target_url: Mapped[str] = mapped_column(Text, nullable=False)
    asin: Mapped[str | None] = mapped_column(String(10), index=True, nullable=True)
    tag: Mapped[str] = mapped_column(String(255), nullable=False)
    src: Mapped[str | None] = mapped_column(String(120), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[str | None] = mapped_column(String(80), nullable=True)
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    ts: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    @classmethod
    def from_record(cls, record: ClickRecord) -> "ClickLog":
        return cls(**record.model_dump())

    def __repr__(self) -> str:
        return f"<ClickLog(id={self.id}, asin='{self.asin}', target_url='{self.target_url}')>"
