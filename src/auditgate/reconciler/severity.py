"""Severity threshold handling."""

from __future__ import annotations

from typing import Any, FrozenSet

from auditgate.config.schema import DEFAULT_LEVEL, SEVERITY_ORDER, Severity


def normalize_level(value: Any) -> Severity:
    """Return a known severity level, falling back to ``info``.

    An unrecognised threshold, of any type, audits everything rather than
    failing.
    """
    level = "" if value is None else str(value).strip().lower()
    if level in SEVERITY_ORDER:
        return level  # type: ignore[return-value]
    return DEFAULT_LEVEL


def admissible_severities(threshold: Any) -> FrozenSet[str]:
    """Every severity level at or above *threshold*."""
    floor = SEVERITY_ORDER[normalize_level(threshold)]
    return frozenset(level for level, rank in SEVERITY_ORDER.items() if rank >= floor)
