"""Turn a reconciliation result into report rows, independent of rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from auditgate.exceptions.models import ExceptionSet
from auditgate.findings.models import ReconciliationResult, VulnerabilityRow

VULNERABILITY_COLUMNS: Tuple[str, ...] = ("ID", "Module", "Title", "Paths", "Severity", "URL", "Ex.")
EXCEPTION_COLUMNS: Tuple[str, ...] = ("ID", "Status", "Expiry", "Notes")

# Column header -> key in the structured report
VULNERABILITY_KEYS: Dict[str, str] = {
    "ID": "id",
    "Module": "module",
    "Title": "title",
    "Paths": "paths",
    "Severity": "severity",
    "URL": "url",
    "Ex.": "excepted",
}
EXCEPTION_KEYS: Dict[str, str] = {
    "ID": "id",
    "Status": "status",
    "Expiry": "expiry",
    "Notes": "notes",
}


def normalize_columns(columns: Iterable[str]) -> List[str]:
    """Keep only known column names, matched case-insensitively."""
    known = {c.lower(): c for c in VULNERABILITY_COLUMNS}
    picked: List[str] = []
    for name in columns:
        canonical = known.get(name.strip().lower())
        if canonical and canonical not in picked:
            picked.append(canonical)
    return picked


def vulnerability_headers(columns: Sequence[str] = ()) -> Tuple[str, ...]:
    """Requested columns in canonical order; all columns when none requested."""
    if not columns:
        return VULNERABILITY_COLUMNS
    return tuple(c for c in VULNERABILITY_COLUMNS if c in columns)


def _cell(row: VulnerabilityRow, header: str) -> str:
    value = row[VULNERABILITY_COLUMNS.index(header)]
    if header == "Ex.":
        return "y" if value else "n"
    return str(value)


@dataclass
class AssembledReport:
    """Row tuples ready for a table, plus their headers."""

    vulnerability_headers: Tuple[str, ...] = VULNERABILITY_COLUMNS
    vulnerability_rows: List[Tuple[str, ...]] = field(default_factory=list)
    exception_headers: Tuple[str, ...] = EXCEPTION_COLUMNS
    exception_rows: List[Tuple[str, str, str, str]] = field(default_factory=list)
    excepted_flags: List[bool] = field(default_factory=list)

    def as_dicts(self) -> Dict[str, List[Dict[str, Any]]]:
        """Structured view keyed by field name instead of column header."""
        vulnerabilities: List[Dict[str, Any]] = []
        for row, excepted in zip(self.vulnerability_rows, self.excepted_flags):
            obj: Dict[str, Any] = {}
            for header, cell in zip(self.vulnerability_headers, row):
                obj[VULNERABILITY_KEYS[header]] = excepted if header == "Ex." else cell
            vulnerabilities.append(obj)
        exceptions = [
            {EXCEPTION_KEYS[h]: cell for h, cell in zip(self.exception_headers, row)}
            for row in self.exception_rows
        ]
        return {"vulnerabilities": vulnerabilities, "exceptions": exceptions}


def assemble(
    result: ReconciliationResult,
    exceptions: ExceptionSet,
    columns: Sequence[str] = (),
    today: Optional[date] = None,
) -> AssembledReport:
    """Project vulnerability rows to *columns*; exception rows stay whole."""
    headers = vulnerability_headers(columns)
    return AssembledReport(
        vulnerability_headers=headers,
        vulnerability_rows=[
            tuple(_cell(row, h) for h in headers) for row in result.report_rows
        ],
        exception_rows=exceptions.report_rows(today),
        excepted_flags=[row.excepted for row in result.report_rows],
    )
