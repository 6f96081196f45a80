"""Exception entry and exception set models."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

NEVER = "never"


class ExceptionKind(str, enum.Enum):
    ID = "id"
    MODULE = "module"


class ExceptionStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    INACTIVE = "inactive"  # declared with "active": false
    INVALID = "invalid"  # expiry could not be read as a date


@dataclass(frozen=True)
class ExceptionEntry:
    """A declaration that suppresses one advisory id or one whole module.

    Status is derived from *today* on every call and never stored: an entry
    expiring on a given date still suppresses through that date.
    """

    key: str
    kind: ExceptionKind = ExceptionKind.ID
    expiry: Optional[date] = None
    notes: str = ""
    active: bool = True
    raw_expiry: Any = None  # as declared, when it could not be parsed

    def status(self, today: Optional[date] = None) -> ExceptionStatus:
        if not self.active:
            return ExceptionStatus.INACTIVE
        if self.raw_expiry is not None and self.expiry is None:
            return ExceptionStatus.INVALID
        if self.expiry is not None and self.expiry < (today or date.today()):
            return ExceptionStatus.EXPIRED
        return ExceptionStatus.ACTIVE

    def is_effective(self, today: Optional[date] = None) -> bool:
        """Only an ACTIVE entry may suppress a finding."""
        return self.status(today) is ExceptionStatus.ACTIVE

    @property
    def expiry_display(self) -> str:
        if self.expiry is not None:
            return self.expiry.isoformat()
        if self.raw_expiry is not None:
            return str(self.raw_expiry)
        return NEVER


class ExceptionSet:
    """Ordered, read-only collection of entries, unique per (kind, key)."""

    def __init__(self, entries: Iterable[ExceptionEntry] = ()) -> None:
        index: Dict[Tuple[ExceptionKind, str], ExceptionEntry] = {}
        for entry in entries:
            # A redeclared key replaces the earlier entry in its original slot.
            index[(entry.kind, entry.key)] = entry
        self._index = index
        self._entries: Tuple[ExceptionEntry, ...] = tuple(index.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    @property
    def entries(self) -> Tuple[ExceptionEntry, ...]:
        return self._entries

    def lookup(self, kind: ExceptionKind, key: Any) -> Optional[ExceptionEntry]:
        return self._index.get((kind, str(key)))

    def ids(self) -> List[str]:
        return [e.key for e in self._entries if e.kind is ExceptionKind.ID]

    def modules(self) -> List[str]:
        return [e.key for e in self._entries if e.kind is ExceptionKind.MODULE]

    def report_rows(self, today: Optional[date] = None) -> List[Tuple[str, str, str, str]]:
        """One ``(key, status, expiry, notes)`` row per entry."""
        return [
            (e.key, e.status(today).value, e.expiry_display, e.notes)
            for e in self._entries
        ]
