"""
User preferences and business profile.

``AppPreferences`` is built once at startup and handed to whoever needs it.
It changes only through ``update()``, which validates the new values and then
calls the injected ``persist`` callback with the full record.
"""
from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from pavilo.core.exceptions import SerializationError, ValidationError
from pavilo.core.storage import (
    APP_SETTINGS_KEY,
    BUSINESS_SETTINGS_KEY,
    Storage,
    load_record,
    save_record,
)
from pavilo.models.records import AppPreferencesData, BusinessSettings

LANGUAGES = ("en", "gu", "hi")

PersistFn = Callable[[AppPreferencesData], None]


class AppPreferences:
    def __init__(self, data: Optional[AppPreferencesData] = None, persist: Optional[PersistFn] = None) -> None:
        self._data = data or AppPreferencesData()
        self._persist = persist

    @property
    def language(self) -> str:
        return self._data.language

    @property
    def dark_mode(self) -> bool:
        return self._data.dark_mode

    def snapshot(self) -> AppPreferencesData:
        return self._data.model_copy()

    def update(self, language: Optional[str] = None, dark_mode: Optional[bool] = None) -> AppPreferencesData:
        changes: dict = {}
        if language is not None:
            if language not in LANGUAGES:
                raise ValidationError(f"Unsupported language '{language}' (allowed: {', '.join(LANGUAGES)})")
            changes["language"] = language
        if dark_mode is not None:
            changes["dark_mode"] = bool(dark_mode)
        if not changes:
            return self.snapshot()

        self._data = self._data.model_copy(update=changes)
        if self._persist is not None:
            self._persist(self.snapshot())
        logger.info(f"preferences: updated {changes}")
        return self.snapshot()

    @classmethod
    def from_storage(cls, storage: Storage) -> "AppPreferences":
        """Load stored preferences and persist later changes back to the same storage."""
        try:
            data = load_record(storage, APP_SETTINGS_KEY, AppPreferencesData)
        except SerializationError as exc:
            logger.warning(f"preferences: {exc}; using defaults")
            data = None
        if data is not None and data.language not in LANGUAGES:
            data = data.model_copy(update={"language": "en"})
        return cls(data, persist=lambda d: save_record(storage, APP_SETTINGS_KEY, d))


def load_business(storage: Storage) -> BusinessSettings:
    try:
        return load_record(storage, BUSINESS_SETTINGS_KEY, BusinessSettings) or BusinessSettings()
    except SerializationError as exc:
        logger.warning(f"business settings: {exc}; using defaults")
        return BusinessSettings()


def save_business(storage: Storage, fields: dict) -> BusinessSettings:
    if "phone" in fields and not str(fields["phone"] or "").strip():
        raise ValidationError("Business phone number is required")
    current = load_business(storage)
    updated = current.model_copy(update={k: v for k, v in fields.items() if v is not None})
    save_record(storage, BUSINESS_SETTINGS_KEY, updated)
    logger.info("business settings saved")
    return updated
