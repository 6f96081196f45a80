"""Parse ``npm audit --json`` output into Finding objects.

Two report shapes are understood:

  - npm v6: a top-level ``advisories`` mapping keyed by advisory id, each
    carrying ``module_name`` and ``findings[].paths``.
  - npm v7+: a top-level ``vulnerabilities`` mapping keyed by package name,
    whose ``via`` list holds advisory objects (``source`` is the id) mixed
    with bare package-name strings for transitive references.

An advisory reported more than once keeps its first position; later
occurrences only contribute new paths.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Union

from auditgate.findings.models import AdvisoryId, Finding


class PayloadError(Exception):
    """Raised when the audit report does not have the expected shape."""


def _decode(payload: Union[str, bytes, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise PayloadError(f"audit report is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise PayloadError("audit report must be a JSON object")
    return payload


def _advisory_id(value: Any) -> AdvisoryId | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    return int(text) if text.isdigit() else text


class _Collector:
    """Keeps advisories in first-seen order and merges repeated paths."""

    def __init__(self) -> None:
        self._order: List[str] = []
        self._fields: Dict[str, Dict[str, Any]] = {}
        self._paths: Dict[str, List[str]] = {}

    def add(self, advisory_id: AdvisoryId, fields: Dict[str, Any], paths: List[str]) -> None:
        key = str(advisory_id)
        if key not in self._fields:
            self._order.append(key)
            self._fields[key] = dict(fields, id=advisory_id)
            self._paths[key] = []
        known = self._paths[key]
        for path in paths:
            if path not in known:
                known.append(path)

    def findings(self) -> List[Finding]:
        return [
            Finding(paths=tuple(self._paths[key]), **self._fields[key])
            for key in self._order
        ]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _as_list(value: Any) -> List[Any]:
    """A bare string is one path, not a sequence of characters."""
    if not value:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, list):
        return [value]
    return value


def _parse_advisories(advisories: Mapping[str, Any]) -> List[Finding]:
    collector = _Collector()
    for key, advisory in advisories.items():
        if not isinstance(advisory, Mapping):
            continue
        advisory_id = _advisory_id(advisory.get("id", key))
        if advisory_id is None:
            continue
        paths: List[str] = []
        for finding in advisory.get("findings") or []:
            if isinstance(finding, Mapping):
                paths.extend(_text(p) for p in _as_list(finding.get("paths")))
        collector.add(
            advisory_id,
            {
                "module": _text(advisory.get("module_name")),
                "title": _text(advisory.get("title")),
                "severity": _text(advisory.get("severity")).lower(),
                "url": _text(advisory.get("url")),
            },
            paths,
        )
    return collector.findings()


def _parse_vulnerabilities(vulnerabilities: Mapping[str, Any]) -> List[Finding]:
    collector = _Collector()
    for package, entry in vulnerabilities.items():
        if not isinstance(entry, Mapping):
            continue
        nodes = [_text(n) for n in _as_list(entry.get("nodes"))]
        for via in entry.get("via") or []:
            # Bare strings point at another package's entry.
            if not isinstance(via, Mapping):
                continue
            advisory_id = _advisory_id(via.get("source"))
            if advisory_id is None:
                continue
            collector.add(
                advisory_id,
                {
                    "module": _text(via.get("name") or package),
                    "title": _text(via.get("title")),
                    "severity": _text(via.get("severity")).lower(),
                    "url": _text(via.get("url")),
                },
                nodes,
            )
    return collector.findings()


def parse_audit_payload(payload: Union[str, bytes, Mapping[str, Any]]) -> List[Finding]:
    """Return the findings of an audit report, in report order.

    Raises:
        PayloadError: the report is not JSON, or has neither an
            ``advisories`` nor a ``vulnerabilities`` mapping.
    """
    data = _decode(payload)
    advisories = data.get("advisories")
    if isinstance(advisories, Mapping):
        return _parse_advisories(advisories)
    vulnerabilities = data.get("vulnerabilities")
    if isinstance(vulnerabilities, Mapping):
        return _parse_vulnerabilities(vulnerabilities)
    raise PayloadError("audit report has no 'advisories' or 'vulnerabilities' section")
