"""Structured, redacting log sink consumed by every provider.

Providers call ``add_log(LogEntry(...))`` around each HTTP exchange. The
sink sanitizes the entry, keeps it in memory, appends it to the log store
and mirrors it to the operator log. It never raises.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Literal

if TYPE_CHECKING:
    from storage import LogStore

logger = logging.getLogger(__name__)

LogType = Literal["request", "response", "error", "info"]

REDACTED = "[REDACTED]"
OPAQUE_THRESHOLD = 1000

SENSITIVE_KEYS = frozenset(
    {"authorization", "api-key", "api_key", "apikey", "x-api-key", "token", "secret", "key", "password"}
)
SENSITIVE_KEY_PARTS = ("token", "secret", "password", "credential", "access_key", "api_key", "apikey")


def get_timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


@dataclass
class LogEntry:
    type: LogType
    data: Any
    timestamp: str = field(default_factory=get_timestamp)

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "type": self.type, "data": self.data}


AddLog = Callable[[LogEntry], None]


def mask_api_key(api_key: str | None) -> str:
    """Keep the first and last four characters: ``sk-abcdefgh`` -> ``sk-a...efgh``."""
    if not api_key:
        return ""
    return f"{api_key[:4]}...{api_key[-4:]}"


def _is_opaque(value: str) -> bool:
    if value.startswith("data:"):
        return True
    return len(value) > OPAQUE_THRESHOLD and not any(ch.isspace() for ch in value)


def _redact_value(key: str, value: Any) -> Any:
    lowered = key.lower()
    if lowered in SENSITIVE_KEYS:
        return REDACTED
    if isinstance(value, str) and any(part in lowered for part in SENSITIVE_KEY_PARTS):
        return REDACTED
    return sanitize(value)


def sanitize(data: Any) -> Any:
    """Return a redacted copy of ``data``. Sanitizing the result again changes nothing."""
    if isinstance(data, dict):
        return {str(k): _redact_value(str(k), v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [sanitize(item) for item in data]
    if isinstance(data, str):
        if _is_opaque(data):
            return f"[OPAQUE {len(data)} chars]"
        return data
    if data is None or isinstance(data, (bool, int, float)):
        return data
    return str(data)


class LogSink:
    """In-memory log buffer with optional persistence."""

    def __init__(self, store: "LogStore | None" = None, max_entries: int = 100):
        self.store = store
        self.max_entries = max_entries
        self._entries: list[LogEntry] = store.load() if store else []

    def add_log(self, entry: LogEntry) -> None:
        try:
            clean = LogEntry(
                type=entry.type,
                data=sanitize(entry.data),
                timestamp=entry.timestamp or get_timestamp(),
            )
            self._entries.append(clean)
            del self._entries[: -self.max_entries]
            if self.store:
                self.store.append(clean)
            logger.debug("[%s] %s", clean.type, json.dumps(clean.data, ensure_ascii=False, default=str))
        except Exception:
            logger.exception("Failed to record log entry")

    __call__ = add_log

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries = []
        if self.store:
            self.store.save([])
