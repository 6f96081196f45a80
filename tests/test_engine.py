"""Tests for the reconciliation engine."""

import json
from datetime import timedelta

import pytest

from auditgate.exceptions.store import build_exception_set
from auditgate.findings.models import Finding, ReconciliationResult
from auditgate.findings.parser import parse_audit_payload
from auditgate.reconciler.engine import match_exception, process_payload, reconcile
from auditgate.reconciler.severity import admissible_severities

ALL = admissible_severities("info")
HIGH = admissible_severities("high")


def _finding(id=1001, module="lodash", severity="high", paths=("express>lodash",)) -> Finding:
    return Finding(
        id=id,
        module=module,
        title="Prototype Pollution",
        severity=severity,
        paths=paths,
        url=f"https://npmjs.com/advisories/{id}",
    )


class TestScenarios:
    def test_a_unhandled_finding_fails(self, today):
        result = reconcile([_finding()], build_exception_set({}), HIGH, today)
        assert result.unhandled_ids == [1001]
        assert result.passed is False

    def test_b_id_exception_passes(self, today):
        exceptions = build_exception_set({"1001": {"notes": "no fix"}})
        result = reconcile([_finding()], exceptions, HIGH, today)
        assert result.unhandled_ids == []
        assert result.unused_exception_ids == []
        assert result.passed is True

    def test_c_expired_exception_does_not_suppress(self, today):
        yesterday = (today - timedelta(days=1)).isoformat()
        exceptions = build_exception_set({"1001": {"expiry": yesterday}})
        result = reconcile([_finding()], exceptions, HIGH, today)
        assert result.unhandled_ids == [1001]
        assert result.unused_exception_ids == ["1001"]
        assert result.passed is False

    def test_d_below_threshold_dropped(self, today):
        result = reconcile([_finding(severity="low")], build_exception_set({}), HIGH, today)
        assert result.report_rows == []
        assert result.unhandled_ids == []
        assert result.passed is True

    def test_e_malformed_payload(self, today):
        result = process_payload({"metadata": {}}, build_exception_set({"1001": ""}), ALL, today)
        assert result == ReconciliationResult(failed=True)
        assert result.passed is False


class TestReconcile:
    def test_payload_order_preserved(self, today):
        findings = [_finding(3), _finding(1), _finding(2)]
        result = reconcile(findings, build_exception_set({}), ALL, today)
        assert result.unhandled_ids == [3, 1, 2]
        assert [row.id for row in result.report_rows] == [3, 1, 2]

    def test_report_row_shape(self, today):
        finding = _finding(paths=("a>lodash", "b>lodash"))
        result = reconcile([finding], build_exception_set({}), ALL, today)
        assert tuple(result.report_rows[0]) == (
            1001,
            "lodash",
            "Prototype Pollution",
            "a>lodash\nb>lodash",
            "high",
            "https://npmjs.com/advisories/1001",
            False,
        )

    def test_excepted_row_still_reported(self, today):
        result = reconcile([_finding()], build_exception_set({"1001": ""}), ALL, today)
        assert len(result.report_rows) == 1
        assert result.report_rows[0].excepted is True

    def test_module_exception(self, today):
        exceptions = build_exception_set({}, ad_hoc_modules=["lodash"])
        result = reconcile([_finding(1), _finding(2)], exceptions, ALL, today)
        assert result.unhandled_ids == []
        assert result.unused_exception_modules == []

    def test_id_match_takes_precedence_over_module(self, today):
        exceptions = build_exception_set({"1001": ""}, ad_hoc_modules=["lodash"])
        result = reconcile([_finding()], exceptions, ALL, today)
        assert result.unhandled_ids == []
        assert result.unused_exception_ids == []
        # Only the entry that suppressed is counted as used
        assert result.unused_exception_modules == ["lodash"]

    def test_expired_id_falls_back_to_module(self, today):
        yesterday = (today - timedelta(days=1)).isoformat()
        exceptions = build_exception_set(
            {"1001": {"expiry": yesterday}}, ad_hoc_modules=["lodash"]
        )
        result = reconcile([_finding()], exceptions, ALL, today)
        assert result.unhandled_ids == []
        assert result.unused_exception_ids == ["1001"]
        assert result.unused_exception_modules == []

    def test_expired_module_never_suppresses(self, today):
        yesterday = (today - timedelta(days=1)).isoformat()
        exceptions = build_exception_set([{"module": "lodash", "expiry": yesterday}])
        result = reconcile([_finding()], exceptions, ALL, today)
        assert result.unhandled_ids == [1001]
        assert result.unused_exception_modules == ["lodash"]

    def test_expiring_today_still_suppresses(self, today):
        exceptions = build_exception_set({"1001": {"expiry": today.isoformat()}})
        result = reconcile([_finding()], exceptions, ALL, today)
        assert result.unhandled_ids == []

    def test_unused_in_declaration_order(self, today):
        exceptions = build_exception_set({"9": "", "1001": "", "3": "", "7": ""})
        result = reconcile([_finding()], exceptions, ALL, today)
        assert result.unused_exception_ids == ["9", "3", "7"]

    def test_exception_on_dropped_finding_is_unused(self, today):
        exceptions = build_exception_set({"1001": ""})
        result = reconcile([_finding(severity="low")], exceptions, HIGH, today)
        assert result.unused_exception_ids == ["1001"]

    def test_inactive_neither_suppresses_nor_unused(self, today):
        exceptions = build_exception_set({"1001": {"active": False}})
        result = reconcile([_finding()], exceptions, ALL, today)
        assert result.unhandled_ids == [1001]
        assert result.unused_exception_ids == []

    def test_invalid_expiry_does_not_suppress(self, today):
        exceptions = build_exception_set({"1001": {"expiry": "whenever"}})
        result = reconcile([_finding()], exceptions, ALL, today)
        assert result.unhandled_ids == [1001]
        assert result.unused_exception_ids == ["1001"]

    def test_string_ids_match(self, today):
        finding = _finding(id="GHSA-rp65-9cf3-cjxr")
        exceptions = build_exception_set({}, ["GHSA-rp65-9cf3-cjxr"])
        assert reconcile([finding], exceptions, ALL, today).passed is True

    def test_unknown_severity_dropped(self, today):
        result = reconcile([_finding(severity="unknown")], build_exception_set({}), ALL, today)
        assert result.report_rows == []

    def test_idempotent(self, today, audit_v6):
        findings = parse_audit_payload(audit_v6)
        exceptions = build_exception_set({"1003": "", "lodash": {"kind": "module"}, "77": ""})
        first = reconcile(findings, exceptions, ALL, today)
        second = reconcile(findings, exceptions, ALL, today)
        assert first == second
        assert json.dumps(first.__dict__, default=list) == json.dumps(second.__dict__, default=list)

    def test_inputs_not_mutated(self, today, audit_v6):
        findings = parse_audit_payload(audit_v6)
        exceptions = build_exception_set({"1001": ""})
        before = (list(findings), exceptions.entries)
        reconcile(findings, exceptions, ALL, today)
        assert (list(findings), exceptions.entries) == before


class TestMatchException:
    def test_no_match(self, today):
        assert match_exception(_finding(), build_exception_set({"1": ""}), today) is None

    def test_returns_suppressing_entry(self, today):
        exceptions = build_exception_set({"1001": "by id"})
        assert match_exception(_finding(), exceptions, today).notes == "by id"


class TestProcessPayload:
    def test_v6_threshold(self, today, audit_v6):
        result = process_payload(audit_v6, build_exception_set({}), HIGH, today)
        assert result.unhandled_ids == [1001, 1003]
        assert [row.id for row in result.report_rows] == [1001, 1003]

    def test_v7_text_payload(self, today, audit_v7):
        exceptions = build_exception_set({}, ["1085674"])
        result = process_payload(json.dumps(audit_v7), exceptions, ALL, today)
        assert result.unhandled_ids == ["GHSA-xxxx-yyyy-zzzz"]
        assert result.report_rows[0].excepted is True

    @pytest.mark.parametrize("payload", ["", "not json", "null", '{"foo": 1}'])
    def test_unparseable(self, today, payload):
        result = process_payload(payload, build_exception_set({}), ALL, today)
        assert result.failed is True
        assert result.unhandled_ids == []
        assert result.report_rows == []
        assert result.unused_exception_ids == []
