"""API key resolution: a read-only environment source first, the key-value store second."""

import logging
from typing import Protocol

from config import API_KEY_ENV_FIELDS, Settings
from storage import KeyValueStore

logger = logging.getLogger(__name__)


class KeySource(Protocol):
    def get(self, key_name: str) -> str: ...


class EnvKeySource:
    """Keys pinned by deployment configuration."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def get(self, key_name: str) -> str:
        field_name = API_KEY_ENV_FIELDS.get(key_name)
        if not field_name:
            return ""
        return getattr(self.settings, field_name, "") or ""


class StoreKeySource:
    """Keys entered by the user, kept in the key-value store."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get(self, key_name: str) -> str:
        return self.store.get(key_name) or ""

    def set(self, key_name: str, value: str) -> None:
        self.store.set(key_name, value)


class CredentialResolver:
    """Priority-ordered chain of key sources.

    ``get_api_key`` returns the first non-empty value. ``set_api_key`` writes
    to the mutable source only when no read-only source defines the key.
    """

    def __init__(self, pinned: list[KeySource], writable: StoreKeySource | None = None):
        self.pinned = pinned
        self.writable = writable

    def _sources(self) -> list[KeySource]:
        return [*self.pinned, self.writable] if self.writable else list(self.pinned)

    def get_api_key(self, key_name: str) -> str:
        for source in self._sources():
            value = source.get(key_name)
            if value:
                return value
        return ""

    def is_pinned(self, key_name: str) -> bool:
        return any(source.get(key_name) for source in self.pinned)

    def set_api_key(self, key_name: str, value: str) -> None:
        if self.is_pinned(key_name):
            logger.info("Ignoring new value for %s: pinned by environment", key_name)
            return
        if self.writable is None:
            logger.warning("No writable key store configured, %s not saved", key_name)
            return
        self.writable.set(key_name, value)
