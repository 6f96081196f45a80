"""Finding and reconciliation result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NamedTuple, Tuple, Union

AdvisoryId = Union[int, str]


@dataclass(frozen=True)
class Finding:
    """One advisory reported against one module."""

    id: AdvisoryId
    module: str
    title: str
    severity: str
    paths: Tuple[str, ...] = ()
    url: str = ""


class VulnerabilityRow(NamedTuple):
    """One line of the vulnerability report, before column projection."""

    id: AdvisoryId
    module: str
    title: str
    paths: str
    severity: str
    url: str
    excepted: bool


@dataclass
class ReconciliationResult:
    """Outcome of checking one audit report against the exception list."""

    unhandled_ids: List[AdvisoryId] = field(default_factory=list)
    report_rows: List[VulnerabilityRow] = field(default_factory=list)
    unused_exception_ids: List[str] = field(default_factory=list)
    unused_exception_modules: List[str] = field(default_factory=list)
    failed: bool = False  # the report itself could not be parsed

    @property
    def passed(self) -> bool:
        return not self.failed and not self.unhandled_ids

    @property
    def unused_exceptions(self) -> List[str]:
        return self.unused_exception_ids + self.unused_exception_modules
