"""Shared test fixtures: sample npm audit reports and exception files."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict

import pytest

TODAY = date(2026, 6, 15)


@pytest.fixture
def today() -> date:
    """A fixed evaluation date for expiry tests."""
    return TODAY


@pytest.fixture
def audit_v6() -> Dict[str, Any]:
    """An npm v6 report with three advisories of different severities."""
    return {
        "actions": [],
        "advisories": {
            "1001": {
                "id": 1001,
                "module_name": "lodash",
                "title": "Prototype Pollution",
                "severity": "high",
                "url": "https://npmjs.com/advisories/1001",
                "findings": [
                    {"version": "4.17.4", "paths": ["express>lodash", "request>lodash"]},
                ],
            },
            "1002": {
                "id": 1002,
                "module_name": "minimist",
                "title": "Prototype Pollution",
                "severity": "low",
                "url": "https://npmjs.com/advisories/1002",
                "findings": [{"version": "0.0.8", "paths": ["mkdirp>minimist"]}],
            },
            "1003": {
                "id": 1003,
                "module_name": "axios",
                "title": "Server-Side Request Forgery",
                "severity": "critical",
                "url": "https://npmjs.com/advisories/1003",
                "findings": [{"version": "0.21.0", "paths": ["axios"]}],
            },
        },
        "metadata": {"vulnerabilities": {"low": 1, "high": 1, "critical": 1}},
    }


@pytest.fixture
def audit_v7() -> Dict[str, Any]:
    """An npm v7+ report; advisory 1085674 is reported under two packages."""
    return {
        "auditReportVersion": 2,
        "vulnerabilities": {
            "nth-check": {
                "name": "nth-check",
                "severity": "high",
                "via": [
                    {
                        "source": 1085674,
                        "name": "nth-check",
                        "dependency": "nth-check",
                        "title": "Inefficient Regular Expression Complexity",
                        "url": "https://github.com/advisories/GHSA-rp65-9cf3-cjxr",
                        "severity": "high",
                        "range": "<2.0.1",
                    }
                ],
                "nodes": ["node_modules/nth-check"],
            },
            "css-select": {
                "name": "css-select",
                "severity": "high",
                "via": ["nth-check"],
                "nodes": ["node_modules/css-select"],
            },
            "svgo": {
                "name": "svgo",
                "severity": "moderate",
                "via": [
                    "css-select",
                    {
                        "source": 1085674,
                        "name": "nth-check",
                        "title": "Inefficient Regular Expression Complexity",
                        "url": "https://github.com/advisories/GHSA-rp65-9cf3-cjxr",
                        "severity": "high",
                    },
                    {
                        "source": "GHSA-xxxx-yyyy-zzzz",
                        "name": "svgo",
                        "title": "Denial of Service",
                        "url": "https://github.com/advisories/GHSA-xxxx-yyyy-zzzz",
                        "severity": "moderate",
                    },
                ],
                "nodes": ["node_modules/svgo"],
            },
        },
        "metadata": {"vulnerabilities": {"moderate": 1, "high": 2}},
    }


@pytest.fixture
def write_json(tmp_path: Path):
    """Write a JSON document under tmp_path and return its path."""

    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
