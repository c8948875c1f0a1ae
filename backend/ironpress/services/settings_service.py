from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Store, StoreSetting
from ..settings_catalog import (
    CATALOG_BY_KEY,
    LEGACY_KEY_MAP,
    SCHEMA_VERSION_KEY,
    SENSITIVE_MASK,
    SETTINGS_CATALOG,
    SETTINGS_SCHEMA_VERSION,
    canonical_key,
)


TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off"}


def _coerce_value(row: dict, raw_value: Any) -> Any:
    key = row["key"]
    t = row["type"]
    v = raw_value
    if v is None or (isinstance(v, str) and v.strip() == "" and t != "string"):
        return None
    if t == "bool":
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            s = v.strip().lower()
            if s in TRUE_STRINGS:
                return True
            if s in FALSE_STRINGS:
                return False
        raise ValidationError(f"{key}: expected boolean")
    if t == "int":
        if isinstance(v, bool):
            raise ValidationError(f"{key}: expected integer")
        if isinstance(v, int):
            return v
        if isinstance(v, float) and int(v) == v:
            return int(v)
        if isinstance(v, str):
            try:
                return int(v.strip())
            except ValueError:
                pass
        raise ValidationError(f"{key}: expected integer")
    if t == "decimal":
        if isinstance(v, bool):
            raise ValidationError(f"{key}: expected decimal")
        try:
            number = Decimal(str(v).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{key}: expected decimal")
        if not number.is_finite():
            raise ValidationError(f"{key}: expected a finite decimal")
        return float(number)
    if t == "string":
        if not isinstance(v, str):
            return str(v)
        return v.strip() or None
    return v


def _validate_constraints(row: dict, value: Any):
    validation = row.get("validation") or {}
    if value is None:
        return
    key = row["key"]
    if row["type"] in {"int", "decimal"}:
        if "min" in validation and value < validation["min"]:
            raise ValidationError(f"{key}: must be >= {validation['min']}")
        if "max" in validation and value > validation["max"]:
            raise ValidationError(f"{key}: must be <= {validation['max']}")
    if row["type"] == "string" and "regex" in validation:
        if not re.match(validation["regex"], str(value)):
            raise ValidationError(f"{key}: format is invalid")


def _normalize_value(row: dict, value: Any) -> Any:
    coerced = _coerce_value(row, value)
    _validate_constraints(row, coerced)
    return coerced


def _encode(row: dict, value: Any) -> str | None:
    if value is None:
        return None
    if row["type"] == "bool":
        return "true" if value else "false"
    return str(value)


def _decode(row: dict, raw: str | None) -> Any:
    if raw is None:
        return row.get("default")
    try:
        value = _coerce_value(row, raw)
    except ValidationError:
        current_app.logger.warning("Ignoring unreadable stored value for setting %s", row["key"])
        return row.get("default")
    return row.get("default") if value is None else value


def _require_store(store_id: str) -> Store:
    store = db.session.get(Store, store_id) if store_id else None
    if not store:
        raise NotFoundError("Store not found", {"store_id": store_id})
    return store


def _load_rows(store_id: str) -> dict[str, StoreSetting]:
    rows = db.session.query(StoreSetting).filter_by(store_id=store_id).all()
    return {r.key: r for r in rows}


def _resolve_raw(row: dict, rows: dict[str, StoreSetting]) -> str | None:
    """Canonical row first, then legacy aliases in catalog order."""
    if row["key"] in rows:
        return rows[row["key"]].value
    for legacy in row.get("legacy_keys", []):
        if legacy in rows:
            return rows[legacy].value
    return None


def get_settings(store_id: str, include_sensitive: bool = False) -> dict[str, Any]:
    """
    Typed settings for a store with defaults filled in.

    Sensitive values are masked unless include_sensitive is set; unset
    sensitive values stay None so callers can tell "configured" apart.
    """
    rows = _load_rows(store_id)
    out: dict[str, Any] = {}
    for row in SETTINGS_CATALOG:
        value = _decode(row, _resolve_raw(row, rows))
        if row.get("is_sensitive") and not include_sensitive and value:
            value = SENSITIVE_MASK
        out[row["key"]] = value
    return out


def get_setting(store_id: str, key: str) -> Any:
    canon = canonical_key(key)
    if not canon:
        raise ValidationError(f"Unknown setting: {key}")
    row = CATALOG_BY_KEY[canon]
    return _decode(row, _resolve_raw(row, _load_rows(store_id)))


def update_settings(store_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    """
    Validate every entry, then upsert all of them in one transaction.

    Legacy key names are accepted and written under their canonical key;
    when both forms are given, the canonical entry wins. A masked
    placeholder for a sensitive key leaves the stored secret unchanged.
    Any invalid entry raises ValidationError and nothing is written.
    """
    _require_store(store_id)
    if not isinstance(updates, dict) or not updates:
        raise ValidationError("settings must be a non-empty object")

    errors: dict[str, str] = {}
    normalized: dict[str, Any] = {}
    # Legacy names first so canonical entries override them
    ordered = sorted(updates.items(), key=lambda kv: kv[0] in CATALOG_BY_KEY)
    for key, raw in ordered:
        canon = canonical_key(key)
        if not canon:
            errors[key] = "Unknown setting"
            continue
        row = CATALOG_BY_KEY[canon]
        if row.get("is_sensitive") and raw == SENSITIVE_MASK:
            continue
        try:
            normalized[canon] = _normalize_value(row, raw)
        except ValidationError as exc:
            errors[key] = exc.message

    if errors:
        raise ValidationError("Invalid settings", {"errors": errors})

    rows = _load_rows(store_id)
    try:
        for canon, value in normalized.items():
            row = CATALOG_BY_KEY[canon]
            encoded = _encode(row, value)
            existing = rows.get(canon)
            if existing:
                existing.value = encoded
            else:
                db.session.add(StoreSetting(store_id=store_id, key=canon, value=encoded))
            for legacy in row.get("legacy_keys", []):
                if legacy in rows:
                    db.session.delete(rows[legacy])
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Updated %d setting(s) for store %s", len(normalized), store_id)
    return get_settings(store_id)


def seed_default_settings(store_id: str, commit: bool = True) -> int:
    """Write catalog defaults that are not yet stored. Returns rows added."""
    rows = _load_rows(store_id)
    added = 0
    for row in SETTINGS_CATALOG:
        if row.get("default") is None or _resolve_raw(row, rows) is not None:
            continue
        db.session.add(StoreSetting(store_id=store_id, key=row["key"], value=_encode(row, row["default"])))
        added += 1
    if SCHEMA_VERSION_KEY not in rows:
        db.session.add(StoreSetting(store_id=store_id, key=SCHEMA_VERSION_KEY, value=str(SETTINGS_SCHEMA_VERSION)))
    if commit:
        db.session.commit()
    return added


def _migrate_store(store_id: str) -> int:
    rows = _load_rows(store_id)
    renamed = 0
    for key, setting in list(rows.items()):
        canon = LEGACY_KEY_MAP.get(key)
        if not canon:
            continue
        if canon in rows:
            db.session.delete(setting)
        else:
            setting.value = _encode(CATALOG_BY_KEY[canon], _decode(CATALOG_BY_KEY[canon], setting.value))
            setting.key = canon
            rows[canon] = setting
        renamed += 1

    version_row = rows.get(SCHEMA_VERSION_KEY)
    if version_row:
        version_row.value = str(SETTINGS_SCHEMA_VERSION)
    else:
        db.session.add(StoreSetting(store_id=store_id, key=SCHEMA_VERSION_KEY, value=str(SETTINGS_SCHEMA_VERSION)))
    return renamed


def migrate_legacy_settings(store_id: str | None = None) -> int:
    """
    Rename legacy setting rows to canonical keys.

    When a store has both the legacy and the canonical row, the canonical
    one is kept and the legacy row dropped. Records the schema version per
    store. Returns the number of legacy rows migrated.
    """
    if store_id:
        _require_store(store_id)
        store_ids = [store_id]
    else:
        store_ids = [sid for (sid,) in db.session.query(Store.id).all()]

    total = 0
    try:
        for sid in store_ids:
            total += _migrate_store(sid)
            # Renames must land before the next store's rows are loaded
            db.session.flush()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Migrated %d legacy setting row(s) across %d store(s)", total, len(store_ids))
    return total
