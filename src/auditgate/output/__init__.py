"""Report assembly and renderers."""

from auditgate.output.report import (
    EXCEPTION_COLUMNS,
    VULNERABILITY_COLUMNS,
    AssembledReport,
    assemble,
    normalize_columns,
    vulnerability_headers,
)

__all__ = [
    "EXCEPTION_COLUMNS",
    "VULNERABILITY_COLUMNS",
    "AssembledReport",
    "assemble",
    "normalize_columns",
    "vulnerability_headers",
]
