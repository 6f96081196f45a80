"""Exception declarations: models and the store that builds them."""

from auditgate.exceptions.models import (
    NEVER,
    ExceptionEntry,
    ExceptionKind,
    ExceptionSet,
    ExceptionStatus,
)
from auditgate.exceptions.store import build_exception_set, load_declarations, parse_expiry

__all__ = [
    "NEVER",
    "ExceptionEntry",
    "ExceptionKind",
    "ExceptionSet",
    "ExceptionStatus",
    "build_exception_set",
    "load_declarations",
    "parse_expiry",
]
