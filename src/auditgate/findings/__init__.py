"""Finding models and audit report parsing."""

from auditgate.findings.models import Finding, ReconciliationResult, VulnerabilityRow
from auditgate.findings.parser import PayloadError, parse_audit_payload

__all__ = [
    "Finding",
    "PayloadError",
    "ReconciliationResult",
    "VulnerabilityRow",
    "parse_audit_payload",
]
