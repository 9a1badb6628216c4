"""Persistence for stored API keys, the structured log and the generation history.

The log and history stores are append-only tables trimmed to their caps
after every insert. Concurrent generation calls therefore never overwrite
each other's entries with a stale snapshot. Persistence failures are
reported on the operator log and never reach the caller.
"""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from models import HistoryRecord, KeyValueEntry, LogRecord

if TYPE_CHECKING:
    from logsink import LogEntry
    from orchestrator import HistoryEntry

logger = logging.getLogger(__name__)


class KeyValueStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def get(self, key: str) -> str | None:
        try:
            with self.session_factory() as session:
                row = session.get(KeyValueEntry, key)
                return row.value if row else None
        except SQLAlchemyError as e:
            logger.error("Failed to read key %s: %s", key, e)
            return None

    def set(self, key: str, value: str) -> None:
        try:
            with self.session_factory.begin() as session:
                row = session.get(KeyValueEntry, key)
                if row:
                    row.value = value
                else:
                    session.add(KeyValueEntry(key=key, value=value))
        except SQLAlchemyError as e:
            logger.error("Failed to save key %s: %s", key, e)

    def delete(self, key: str) -> None:
        try:
            with self.session_factory.begin() as session:
                session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
        except SQLAlchemyError as e:
            logger.error("Failed to delete key %s: %s", key, e)


class LogStore:
    """Most recent ``max_entries`` log entries, oldest first. Entries arrive already redacted."""

    def __init__(self, session_factory: sessionmaker[Session], max_entries: int = 100):
        self.session_factory = session_factory
        self.max_entries = max_entries

    def load(self) -> list["LogEntry"]:
        from logsink import LogEntry

        try:
            with self.session_factory() as session:
                rows = session.scalars(
                    select(LogRecord).order_by(LogRecord.id.desc()).limit(self.max_entries)
                ).all()
        except SQLAlchemyError as e:
            logger.error("Failed to load logs: %s", e)
            return []
        return [LogEntry(type=r.type, data=r.data, timestamp=r.timestamp) for r in reversed(rows)]

    def append(self, entry: "LogEntry") -> None:
        try:
            with self.session_factory.begin() as session:
                session.add(LogRecord(timestamp=entry.timestamp, type=entry.type, data=entry.data))
                session.flush()
                _trim(session, LogRecord, self.max_entries)
        except SQLAlchemyError as e:
            logger.error("Failed to save log entry: %s", e)

    def save(self, entries: list["LogEntry"]) -> None:
        """Replace the stored log with ``entries`` (oldest first)."""
        try:
            with self.session_factory.begin() as session:
                session.execute(delete(LogRecord))
                for entry in entries[-self.max_entries:]:
                    session.add(LogRecord(timestamp=entry.timestamp, type=entry.type, data=entry.data))
        except SQLAlchemyError as e:
            logger.error("Failed to save logs: %s", e)


class HistoryStore:
    """Most recent ``max_entries`` generation batches, newest first."""

    def __init__(self, session_factory: sessionmaker[Session], max_entries: int = 50):
        self.session_factory = session_factory
        self.max_entries = max_entries

    def load(self) -> list["HistoryEntry"]:
        from orchestrator import HistoryEntry

        try:
            with self.session_factory() as session:
                rows = session.scalars(
                    select(HistoryRecord).order_by(HistoryRecord.id.desc()).limit(self.max_entries)
                ).all()
        except SQLAlchemyError as e:
            logger.error("Failed to load history: %s", e)
            return []
        return [
            HistoryEntry(
                prompt=r.prompt,
                img_url=r.img_url,
                model=r.model,
                time=r.time,
                size=r.size,
                image_count=r.image_count,
                all_images=tuple(r.all_images) if r.all_images is not None else None,
            )
            for r in rows
        ]

    def add(self, entry: "HistoryEntry") -> None:
        try:
            with self.session_factory.begin() as session:
                session.add(_history_record(entry))
                session.flush()
                _trim(session, HistoryRecord, self.max_entries)
        except SQLAlchemyError as e:
            logger.error("Failed to save history entry: %s", e)

    def save(self, entries: list["HistoryEntry"]) -> None:
        """Replace the stored history with ``entries`` (newest first)."""
        try:
            with self.session_factory.begin() as session:
                session.execute(delete(HistoryRecord))
                for entry in reversed(entries[: self.max_entries]):
                    session.add(_history_record(entry))
        except SQLAlchemyError as e:
            logger.error("Failed to save history: %s", e)

    def clear(self) -> None:
        self.save([])


def _history_record(entry: "HistoryEntry") -> HistoryRecord:
    return HistoryRecord(
        prompt=entry.prompt,
        img_url=entry.img_url,
        model=entry.model,
        time=entry.time,
        size=entry.size,
        image_count=entry.image_count,
        all_images=list(entry.all_images) if entry.all_images is not None else None,
    )


def _trim(session: Session, table, keep: int) -> None:
    """Delete every row older than the newest ``keep`` rows."""
    cutoff = session.scalar(select(table.id).order_by(table.id.desc()).offset(keep - 1).limit(1))
    if cutoff is not None:
        session.execute(delete(table).where(table.id < cutoff))
