"""Load and merge configuration from .auditgate.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from auditgate.config.schema import (
    OUTPUT_FORMATS,
    AuditConfig,
    AuditGateConfig,
    OutputConfig,
)

CONFIG_FILENAME = ".auditgate.toml"


class ConfigError(Exception):
    """Raised when config or the exceptions file is malformed or unreadable."""


def find_config_file(project_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = project_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def split_csv(value: Optional[str]) -> List[str]:
    """Split a comma-separated flag value, trimming and dropping empties."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _as_str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return split_csv(value)
    if isinstance(value, Iterable):
        return [str(v).strip() for v in value if str(v).strip()]
    return []


def _merge_env_overrides(cfg: AuditGateConfig) -> None:
    """Apply NPM_CONFIG_AUDIT_LEVEL and AUDITGATE_* environment overrides."""
    if val := os.environ.get("NPM_CONFIG_AUDIT_LEVEL"):
        cfg.audit.level = val
    if val := os.environ.get("AUDITGATE_LEVEL"):
        cfg.audit.level = val
    if val := os.environ.get("AUDITGATE_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("AUDITGATE_EXCLUDE"):
        cfg.audit.exclude = _as_str_list(cfg.audit.exclude) + split_csv(val)
    if val := os.environ.get("AUDITGATE_COLUMNS"):
        cfg.output.columns = split_csv(val)


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.get(section, {}).items() if k in valid_fields}
    return cls(**filtered)


def normalize(cfg: AuditGateConfig) -> AuditGateConfig:
    """Validate loosely-typed values once, in place.

    Unknown severity levels fall back to ``info`` and unknown column names
    are dropped. A non-string or blank exceptions file falls back to
    the default. Called after every layer of overrides has been applied.
    """
    from auditgate.output.report import normalize_columns
    from auditgate.reconciler.severity import normalize_level

    cfg.audit.level = normalize_level(cfg.audit.level)
    if not isinstance(cfg.audit.exceptions_file, str) or not cfg.audit.exceptions_file.strip():
        cfg.audit.exceptions_file = AuditConfig.exceptions_file
    cfg.audit.exclude = _as_str_list(cfg.audit.exclude)
    cfg.audit.module_ignore = _as_str_list(cfg.audit.module_ignore)
    cfg.output.columns = normalize_columns(_as_str_list(cfg.output.columns))
    return cfg


def load_config(
    project_root: Path,
    config_override: Optional[str] = None,
) -> AuditGateConfig:
    """Load, validate, and return an AuditGateConfig."""
    config_path = find_config_file(project_root, config_override)

    if config_path is None:
        cfg = AuditGateConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = AuditGateConfig(
                version=str(raw.get("version", "1.0")),
                audit=_build_section(raw, AuditConfig, "audit"),
                output=_build_section(raw, OutputConfig, "output"),
            )
        except (AttributeError, TypeError) as exc:
            raise ConfigError(f"Invalid section in {config_path}: {exc}") from exc
        if cfg.output.format not in OUTPUT_FORMATS:
            raise ConfigError(f"Invalid output format in {config_path}: {cfg.output.format}")

    _merge_env_overrides(cfg)
    return normalize(cfg)
