"""
Storage adapter: named collections held as serialized JSON text.

This is the only I/O boundary of the billing core. Every write replaces the
whole value under a key; there are no transactions and no locking, so the
last writer wins.

Backends:
  SqlStorage     – one row per key in the ``stored_values`` table
  FileStorage    – one ``<key>.json`` file per key under DATA_DIR
  MemoryStorage  – plain dict, for tests and scripts

``save`` never raises. Oversized values (quota) and I/O failures are logged
and the write is dropped, leaving the caller's in-memory state as it was.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Optional, Type, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError
from sqlmodel import Session

from pavilo.core.config import settings
from pavilo.core.exceptions import SerializationError
from pavilo.models.records import utcnow
from pavilo.models.stored import StoredValue

# ── Storage keys ──────────────────────────────────────────────────────────────

PRODUCTS_KEY = "pavilo_products"
CUSTOMERS_KEY = "pavilo_customers"
INVOICES_KEY = "pavilo_invoices"
PAYMENTS_KEY = "pavilo_payments"
APP_SETTINGS_KEY = "pavilo_app_settings"
BUSINESS_SETTINGS_KEY = "pavilo_business_settings"
SUBSCRIPTIONS_KEY = "pavilo_subscriptions"

R = TypeVar("R", bound=BaseModel)


class Storage:
    """Base adapter. Subclasses implement ``_read`` and ``_write``."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.quota_bytes = quota_bytes if quota_bytes is not None else settings.STORAGE_QUOTA_BYTES

    def load(self, key: str) -> Optional[str]:
        """Return the text stored under ``key``, or None when absent or unreadable."""
        try:
            return self._read(key)
        except Exception as exc:
            logger.error(f"storage: failed to read '{key}': {exc}")
            return None

    def save(self, key: str, text: str) -> None:
        """Replace the value under ``key``. Failures are logged, never raised."""
        size = len(text.encode("utf-8"))
        if size > self.quota_bytes:
            logger.error(
                f"storage: quota exceeded for '{key}' ({size} > {self.quota_bytes} bytes), write dropped"
            )
            return
        try:
            self._write(key, text)
        except Exception as exc:
            logger.error(f"storage: failed to write '{key}': {exc}")

    def _read(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _write(self, key: str, text: str) -> None:
        raise NotImplementedError


class MemoryStorage(Storage):
    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        super().__init__(quota_bytes)
        self.values: dict[str, str] = {}

    def _read(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def _write(self, key: str, text: str) -> None:
        self.values[key] = text


class FileStorage(Storage):
    def __init__(self, data_dir: Optional[str] = None, quota_bytes: Optional[int] = None) -> None:
        super().__init__(quota_bytes)
        self.data_dir = Path(data_dir or settings.DATA_DIR)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, text: str) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(text, encoding="utf-8")


class SqlStorage(Storage):
    def __init__(self, engine=None, quota_bytes: Optional[int] = None) -> None:
        super().__init__(quota_bytes)
        if engine is None:
            from pavilo.core.database import engine as default_engine

            engine = default_engine
        self.engine = engine

    def _read(self, key: str) -> Optional[str]:
        with Session(self.engine) as session:
            row = session.get(StoredValue, key)
            return row.value if row else None

    def _write(self, key: str, text: str) -> None:
        with Session(self.engine) as session:
            row = session.get(StoredValue, key)
            if row:
                row.value = text
                row.updated_at = utcnow()
            else:
                row = StoredValue(key=key, value=text)
            session.add(row)
            session.commit()


_storage: Optional[Storage] = None


def get_storage() -> Storage:
    """Return the process-wide adapter for the configured backend."""
    global _storage
    if _storage is None:
        if settings.STORAGE_BACKEND == "file":
            _storage = FileStorage()
        else:
            _storage = SqlStorage()
        logger.info(f"storage: using {type(_storage).__name__}")
    return _storage


# ── Collection helpers ────────────────────────────────────────────────────────


def load_collection(storage: Storage, key: str, model: Type[R]) -> Optional[list[R]]:
    """
    Decode the JSON array under ``key`` into ``model`` instances.
    Returns None when nothing is stored; raises SerializationError on corrupt
    text or records that do not match the schema.
    """
    raw = storage.load(key)
    if raw is None:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SerializationError(key, str(exc)) from exc
    if not isinstance(data, list):
        raise SerializationError(key, f"expected a list, got {type(data).__name__}")
    try:
        return [model.model_validate(item) for item in data]
    except SchemaError as exc:
        raise SerializationError(key, str(exc)) from exc


def save_collection(storage: Storage, key: str, records: Iterable[BaseModel]) -> None:
    """Serialize the full collection by alias and replace it in storage."""
    try:
        text = json.dumps([r.to_stored() for r in records], ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.error(f"storage: could not serialize '{key}': {exc}")
        return
    storage.save(key, text)


def load_record(storage: Storage, key: str, model: Type[R]) -> Optional[R]:
    raw = storage.load(key)
    if raw is None:
        return None
    try:
        return model.model_validate(json.loads(raw))
    except (json.JSONDecodeError, SchemaError) as exc:
        raise SerializationError(key, str(exc)) from exc


def save_record(storage: Storage, key: str, record: BaseModel) -> None:
    try:
        text = json.dumps(record.to_stored(), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.error(f"storage: could not serialize '{key}': {exc}")
        return
    storage.save(key, text)
