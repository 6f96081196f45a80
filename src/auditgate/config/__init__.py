"""Configuration loading, schema, and defaults."""

from auditgate.config.loader import ConfigError, load_config
from auditgate.config.schema import SEVERITY_ORDER, AuditGateConfig, Severity

__all__ = [
    "AuditGateConfig",
    "ConfigError",
    "SEVERITY_ORDER",
    "Severity",
    "load_config",
]
