from __future__ import annotations

from ..records import Settings
from ..validation import (
    BOOLEAN,
    INTEGER,
    TEXT,
    RecordValidationPolicy,
    ValidationError,
    enforce_rules_settings,
    validate_payload,
)
from .document_store import SETTINGS, DocumentStore

SETTINGS_POLICY = RecordValidationPolicy(
    field_types={
        "companyName": TEXT,
        "lowStockThreshold": INTEGER,
        "darkMode": BOOLEAN,
    },
)


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


def validate_settings_patch(patch: dict) -> dict:
    try:
        cleaned = validate_payload(payload=patch, policy=SETTINGS_POLICY, partial=True)
        enforce_rules_settings(cleaned)
    except ValidationError as exc:
        raise SettingsValidationError(str(exc)) from exc
    return cleaned


def get_settings(store: DocumentStore) -> Settings:
    """Stored settings; missing keys and an unreadable document fall back to defaults."""
    return Settings.from_dict(store.get_dict(SETTINGS) or {})


def save_settings(store: DocumentStore, patch: dict, *, commit: bool = True) -> Settings:
    cleaned = validate_settings_patch(patch)
    merged = get_settings(store).to_dict()
    merged.update(cleaned)
    settings = Settings.from_dict(merged)
    store.set(SETTINGS, settings.to_dict(), commit=commit)
    return settings
