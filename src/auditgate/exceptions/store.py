"""Build the exception set from the exceptions file and CLI flags.

Exceptions file format (``.nsprc`` by default, JSON; YAML for ``.yaml``/``.yml``).
Either a mapping keyed by advisory id::

    {
      "1001": {"active": true, "expiry": "2026-12-31", "notes": "no fix yet"},
      "GHSA-xxxx-xxxx-xxxx": "dev-only dependency",
      "lodash": {"kind": "module", "notes": "patched upstream"}
    }

or a list of records naming either an ``id`` or a ``module``::

    - id: 1001
      expiry: 2026-12-31
    - module: lodash
      notes: patched upstream

Records without a key are skipped. Expiry may be an ISO date or datetime,
a date object, or epoch milliseconds.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Mapping, Optional

import yaml

from auditgate.config.loader import ConfigError
from auditgate.exceptions.models import ExceptionEntry, ExceptionKind, ExceptionSet


def parse_expiry(value: Any) -> Optional[date]:
    """Return the calendar date of *value*, or None if it is not a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            # Local calendar date, the same reference as date.today().
            return datetime.fromtimestamp(value / 1000).date()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def _kind(value: Any) -> ExceptionKind:
    if str(value or "").strip().lower() == ExceptionKind.MODULE.value:
        return ExceptionKind.MODULE
    return ExceptionKind.ID


def _make_entry(key: Any, kind: ExceptionKind, record: Any) -> Optional[ExceptionEntry]:
    key = "" if key is None else str(key).strip()
    if not key:
        return None

    if isinstance(record, Mapping):
        details = record
    elif isinstance(record, str):
        details = {"notes": record}
    else:
        details = {}

    raw_expiry = details.get("expiry")
    if raw_expiry is None or (isinstance(raw_expiry, str) and not raw_expiry.strip()):
        expiry, raw_expiry = None, None
    else:
        expiry = parse_expiry(raw_expiry)

    return ExceptionEntry(
        key=key,
        kind=kind,
        expiry=expiry,
        notes=str(details.get("notes") or ""),
        active=bool(details.get("active", True)),
        raw_expiry=None if expiry is not None else raw_expiry,
    )


def _iter_declared(declarations: Any) -> Iterator[ExceptionEntry]:
    if declarations is None:
        return
    if isinstance(declarations, Mapping):
        for key, record in declarations.items():
            kind = _kind(record.get("kind")) if isinstance(record, Mapping) else ExceptionKind.ID
            entry = _make_entry(key, kind, record)
            if entry is not None:
                yield entry
        return
    if isinstance(declarations, list):
        for record in declarations:
            if not isinstance(record, Mapping):
                continue
            if record.get("module") is not None:
                entry = _make_entry(record["module"], ExceptionKind.MODULE, record)
            elif record.get("id") is not None:
                entry = _make_entry(record["id"], ExceptionKind.ID, record)
            else:
                entry = _make_entry(record.get("key"), _kind(record.get("kind")), record)
            if entry is not None:
                yield entry
        return
    raise TypeError(
        f"exception declarations must be a mapping or a list, not {type(declarations).__name__}"
    )


def _iter_ad_hoc(keys: Iterable[str], kind: ExceptionKind) -> Iterator[ExceptionEntry]:
    for key in keys:
        entry = _make_entry(key, kind, None)
        if entry is not None:
            yield entry


def build_exception_set(
    declarations: Any,
    ad_hoc_ids: Iterable[str] = (),
    ad_hoc_modules: Iterable[str] = (),
) -> ExceptionSet:
    """Merge file declarations with flag-provided keys.

    Flag-provided keys never expire and are merged last, so they replace a
    file declaration for the same key.
    """
    entries: List[ExceptionEntry] = list(_iter_declared(declarations))
    entries.extend(_iter_ad_hoc(ad_hoc_ids, ExceptionKind.ID))
    entries.extend(_iter_ad_hoc(ad_hoc_modules, ExceptionKind.MODULE))
    return ExceptionSet(entries)


def load_declarations(path: Path) -> Any:
    """Read the exceptions file. A missing file means no declarations."""
    if not path.is_file():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}

    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, (Mapping, list)):
        raise ConfigError(f"{path} must contain a mapping or a list of exceptions")
    return data
