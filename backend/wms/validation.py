from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models import ALERT_THRESHOLD_FIELDS, STORE_TYPES
from .permissions import ROLES


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - extra_fields: accepted keys that are not columns (validated by the caller)
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    extra_fields: set[str] | None = None


WAREHOUSE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

STORE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "store_type"},
    required_on_create={"name", "store_type"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sku", "description", "quantity", "unit", "price"},
    required_on_create={"name", "sku"},
    extra_fields={"alert_thresholds"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields. Keys listed in
    policy.extra_fields are passed through untouched.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    extra = policy.extra_fields or set()
    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k in extra:
            continue
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        if k in extra:
            patch[k] = raw
            continue

        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for required text fields
        if isinstance(col.type, (String, Text)) and k in required:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_store(patch: dict) -> None:
    if "store_type" in patch and patch["store_type"] not in STORE_TYPES:
        raise ValidationError(f"store_type must be one of: {', '.join(STORE_TYPES)}")


def normalize_alert_thresholds(raw: Any) -> dict:
    """
    Accepts a partial thresholds mapping and returns the integer values that
    were supplied. Each value must be >= 0; no ordering between the five
    values is enforced here.
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError("alert_thresholds must be an object")

    cleaned: dict = {}
    for key, value in raw.items():
        if key not in ALERT_THRESHOLD_FIELDS:
            raise ValidationError(f"Unknown alert threshold: {key}")
        cleaned[key] = _coerce_int(f"alert_thresholds.{key}", value)
        if cleaned[key] < 0:
            raise ValidationError(f"alert_thresholds.{key} must be >= 0")
    return cleaned


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "quantity" in patch and patch["quantity"] is not None and patch["quantity"] < 0:
        raise ValidationError("quantity must be >= 0")

    if "alert_thresholds" in patch:
        patch["alert_thresholds"] = normalize_alert_thresholds(patch["alert_thresholds"])


def validate_role(role: Any) -> str:
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    return role


def normalize_email(email: Any) -> str:
    """Emails are compared case-insensitively everywhere."""
    if not isinstance(email, str) or "@" not in email:
        raise ValidationError("A valid email address is required")
    return email.strip().lower()
