"""Reconciler: severity threshold and exception matching."""

from auditgate.reconciler.engine import match_exception, process_payload, reconcile
from auditgate.reconciler.severity import admissible_severities, normalize_level

__all__ = [
    "admissible_severities",
    "match_exception",
    "normalize_level",
    "process_payload",
    "reconcile",
]
