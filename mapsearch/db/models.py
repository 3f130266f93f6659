"""SQLAlchemy models for locally persisted search state."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, LargeBinary, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mapsearch.db.base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StoredBlob(Base):
    __tablename__ = "stored_blobs"
    __table_args__ = (UniqueConstraint("key"),)

    key: Mapped[str] = mapped_column(String(128), nullable=False)
    payload: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )


__all__ = ["StoredBlob"]
