"""Reconciliation engine: cross-reference findings with exceptions.

For each finding, in report order:

  1. Findings below the severity threshold are dropped entirely.
  2. An effective ID exception is looked up first, then an effective
     MODULE exception. Only the entry that suppresses is counted as used.
  3. Suppressed findings are reported as excepted; the rest are unhandled.

Entries never counted as used are reported as unused, in declaration order.
Expired and invalid entries can never suppress, so they are always unused.
Inactive entries are switched off on purpose and are not reported.
"""

from __future__ import annotations

from datetime import date
from typing import AbstractSet, Any, Iterable, List, Mapping, Optional, Set, Tuple, Union

from auditgate.exceptions.models import (
    ExceptionEntry,
    ExceptionKind,
    ExceptionSet,
    ExceptionStatus,
)
from auditgate.findings.models import Finding, ReconciliationResult, VulnerabilityRow
from auditgate.findings.parser import PayloadError, parse_audit_payload

PATH_SEPARATOR = "\n"


def match_exception(
    finding: Finding,
    exceptions: ExceptionSet,
    today: date,
) -> Optional[ExceptionEntry]:
    """Return the entry that suppresses *finding*, if any."""
    by_id = exceptions.lookup(ExceptionKind.ID, finding.id)
    if by_id is not None and by_id.is_effective(today):
        return by_id
    by_module = exceptions.lookup(ExceptionKind.MODULE, finding.module)
    if by_module is not None and by_module.is_effective(today):
        return by_module
    return None


def reconcile(
    findings: Iterable[Finding],
    exceptions: ExceptionSet,
    admissible: AbstractSet[str],
    today: Optional[date] = None,
) -> ReconciliationResult:
    """Decide which findings are excepted and which block."""
    today = today or date.today()
    result = ReconciliationResult()
    used: Set[Tuple[ExceptionKind, str]] = set()

    for finding in findings:
        if finding.severity not in admissible:
            continue

        entry = match_exception(finding, exceptions, today)
        if entry is not None:
            used.add((entry.kind, entry.key))
        else:
            result.unhandled_ids.append(finding.id)

        result.report_rows.append(
            VulnerabilityRow(
                id=finding.id,
                module=finding.module,
                title=finding.title,
                paths=PATH_SEPARATOR.join(finding.paths),
                severity=finding.severity,
                url=finding.url,
                excepted=entry is not None,
            )
        )

    for entry in exceptions:
        if (entry.kind, entry.key) in used:
            continue
        if entry.status(today) is ExceptionStatus.INACTIVE:
            continue
        if entry.kind is ExceptionKind.ID:
            result.unused_exception_ids.append(entry.key)
        else:
            result.unused_exception_modules.append(entry.key)

    return result


def process_payload(
    payload: Union[str, bytes, Mapping[str, Any]],
    exceptions: ExceptionSet,
    admissible: AbstractSet[str],
    today: Optional[date] = None,
) -> ReconciliationResult:
    """Parse an audit report and reconcile it.

    A report that cannot be parsed yields ``failed=True`` and nothing else.
    """
    try:
        findings: List[Finding] = parse_audit_payload(payload)
    except PayloadError:
        return ReconciliationResult(failed=True)
    return reconcile(findings, exceptions, admissible, today)
