"""JSON reporter for CI pipelines."""

from __future__ import annotations

import json
from typing import Any, Dict

from auditgate import __version__
from auditgate.findings.models import ReconciliationResult
from auditgate.output.report import AssembledReport


def to_dict(result: ReconciliationResult, report: AssembledReport) -> Dict[str, Any]:
    """Convert a result and its assembled report to a JSON-serialisable dict."""
    views = report.as_dicts()
    return {
        "version": __version__,
        "failed": result.failed,
        "passed": result.passed,
        "unhandled_ids": list(result.unhandled_ids),
        "vulnerabilities": views["vulnerabilities"],
        "exceptions": views["exceptions"],
        "unused_exception_ids": list(result.unused_exception_ids),
        "unused_exception_modules": list(result.unused_exception_modules),
    }


def render(result: ReconciliationResult, report: AssembledReport) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(result, report), indent=2)
