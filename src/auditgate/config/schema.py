"""Configuration schema: dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal

Severity = Literal["info", "low", "moderate", "high", "critical"]

SEVERITY_ORDER: dict[str, int] = {
    "info": 0,
    "low": 1,
    "moderate": 2,
    "high": 3,
    "critical": 4,
}

DEFAULT_LEVEL: Severity = "info"

OutputFormat = Literal["terminal", "json"]

OUTPUT_FORMATS = ("terminal", "json")


@dataclass
class AuditConfig:
    level: str = DEFAULT_LEVEL  # report findings at or above this level
    exclude: List[str] = field(default_factory=list)  # advisory ids
    module_ignore: List[str] = field(default_factory=list)  # module names
    exceptions_file: str = ".nsprc"


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    columns: List[str] = field(default_factory=list)  # empty = all columns
    show_exceptions: bool = True
    show_summary: bool = True


@dataclass
class AuditGateConfig:
    version: str = "1.0"
    audit: AuditConfig = field(default_factory=AuditConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
