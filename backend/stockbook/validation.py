from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any


# Maximum price: 9,999,999.99
# Keeps prices in a range every exporter can print without exponents
MAX_PRICE = Decimal("9999999.99")

TEXT = "text"
OPTIONAL_TEXT = "optional_text"
INTEGER = "integer"
DECIMAL = "decimal"
BOOLEAN = "boolean"


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate username)."""


@dataclass(frozen=True)
class RecordValidationPolicy:
    """
    Central policy layer for JSON records:
    - field_types: what clients are allowed to set, and how each value is coerced
    - required_on_create: fields required when creating a record
    """
    field_types: dict[str, str]
    required_on_create: frozenset[str] = frozenset()


def _coerce_integer(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Whole floats come from JSON clients that do not distinguish 3 and 3.0
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    elif isinstance(value, str):
        text = value.strip()
    else:
        raise ValidationError(f"{key} must be a number")
    try:
        result = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    return result


def _coerce_value(key: str, kind: str, value: Any):
    if kind == INTEGER:
        return _coerce_integer(key, value)
    if kind == DECIMAL:
        return _coerce_decimal(key, value)
    if kind == BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        # fallback: truthiness
        return bool(value)
    if kind == OPTIONAL_TEXT:
        text = str(value).strip()
        return text or None
    # TEXT
    text = str(value).strip()
    if text == "":
        raise ValidationError(f"{key} cannot be blank")
    return text


def validate_payload(
    *,
    payload: Any,
    policy: RecordValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes an incoming JSON object against a policy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.field_types:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        kind = policy.field_types[k]
        if raw is None:
            if kind != OPTIONAL_TEXT:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue
        patch[k] = _coerce_value(k, kind, raw)

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by field types alone.
    Keep these small and centralized.
    """
    if "price" in patch:
        price = patch["price"]
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE:,.2f}")

    if "stock" in patch and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")


def enforce_rules_settings(patch: dict) -> None:
    if "lowStockThreshold" in patch and patch["lowStockThreshold"] < 0:
        raise ValidationError("lowStockThreshold must be >= 0")
