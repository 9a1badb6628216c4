"""SQLAlchemy models: key-value entries plus the append-only log and history tables."""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    String,
    Text,
    JSON,
)
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class KeyValueEntry(Base):
    """Plain key-value storage (stored API keys and small settings)."""

    __tablename__ = "kv_entries"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False, default="")
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class LogRecord(Base):
    """One redacted structured log entry. Rows are only ever inserted or trimmed."""

    __tablename__ = "log_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(String(64), nullable=False)
    type = Column(String(16), nullable=False, index=True)  # request / response / error / info
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class HistoryRecord(Base):
    """One successful generation batch."""

    __tablename__ = "history_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    prompt = Column(Text, nullable=False)
    img_url = Column(Text, nullable=False)
    model = Column(String(128), nullable=False, index=True)
    time = Column(String(64), nullable=False)
    size = Column(String(32), nullable=False)
    image_count = Column(Integer, nullable=True)
    all_images = Column(JSON, nullable=True)  # list of image URLs
    created_at = Column(DateTime, default=_utcnow, nullable=False)
