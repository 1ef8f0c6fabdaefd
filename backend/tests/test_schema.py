"""Tests for inbound report validation."""
from datetime import datetime, timezone

import pytest

from backup_monitor.schemas.report import ReportValidationError, parse_report


def _payload(**overrides):
    payload = {"hostname": "PROD-DB-01", "status": "success", "time": "2026-10-18T10:00:00Z"}
    payload.update(overrides)
    return payload


def _fields(exc_info) -> set:
    return {e["field"] for e in exc_info.value.errors}


def test_minimal_report_gets_defaults():
    report = parse_report(_payload())
    assert report.hostname == "PROD-DB-01"
    assert report.status == "success"
    assert report.time == datetime(2026, 10, 18, 10, 0, tzinfo=timezone.utc)
    assert report.size == ""
    assert report.size_bytes == 0
    assert report.duration == 0
    assert report.error_message == ""
    assert report.metadata == {}
    assert report.was_verified is False
    assert report.verification_result is None
    assert report.ip == ""
    assert report.device_type == "unknown"
    assert report.api_key is None


def test_camel_case_fields_are_mapped():
    report = parse_report(_payload(
        sizeBytes=1024, jobName="nightly", errorMessage="disk full", fileCount=12,
        changedFiles=3, compressionRatio=1.5, wasVerified=True, verificationResult="warning",
        deviceType="server", ip="10.0.0.5", metadata={"version": "2.0.7"}, apiKey="bmk_x",
    ))
    assert report.size_bytes == 1024
    assert report.job_name == "nightly"
    assert report.error_message == "disk full"
    assert report.file_count == 12
    assert report.changed_files == 3
    assert report.compression_ratio == 1.5
    assert report.was_verified is True
    assert report.verification_result == "warning"
    assert report.device_type == "server"
    assert report.ip == "10.0.0.5"
    assert report.metadata == {"version": "2.0.7"}
    assert report.api_key == "bmk_x"


def test_numeric_strings_are_coerced():
    report = parse_report(_payload(sizeBytes="2048", fileCount="7", duration="95"))
    assert report.size_bytes == 2048
    assert report.file_count == 7
    assert report.duration == 95


def test_duplicati_timespan_duration():
    assert parse_report(_payload(duration="00:01:23.4560000")).duration == 83
    assert parse_report(_payload(duration="1.02:00:00")).duration == 93600


def test_naive_time_is_taken_as_utc():
    report = parse_report(_payload(time="2026-10-18T10:00:00"))
    assert report.time.tzinfo is not None
    assert report.time == datetime(2026, 10, 18, 10, 0, tzinfo=timezone.utc)


def test_offset_time_is_converted_to_utc():
    report = parse_report(_payload(time="2026-10-18T12:00:00+02:00"))
    assert report.time == datetime(2026, 10, 18, 10, 0, tzinfo=timezone.utc)


def test_hostname_is_trimmed():
    assert parse_report(_payload(hostname="  web-01 ")).hostname == "web-01"


def test_unknown_fields_are_ignored():
    report = parse_report(_payload(somethingElse="x"))
    assert not hasattr(report, "somethingElse")


def test_every_offending_field_is_reported():
    payload = _payload(status="unknown", sizeBytes="lots", time="yesterday-ish")
    del payload["hostname"]
    with pytest.raises(ReportValidationError) as exc:
        parse_report(payload)
    assert {"hostname", "status", "sizeBytes", "time"} <= _fields(exc)
    assert all(e["message"] for e in exc.value.errors)


def test_blank_hostname_rejected():
    with pytest.raises(ReportValidationError) as exc:
        parse_report(_payload(hostname="   "))
    assert _fields(exc) == {"hostname"}


def test_non_numeric_count_is_not_zeroed():
    with pytest.raises(ReportValidationError) as exc:
        parse_report(_payload(fileCount="n/a"))
    assert _fields(exc) == {"fileCount"}


def test_non_object_payload_rejected():
    with pytest.raises(ReportValidationError) as exc:
        parse_report(["hostname", "status"])
    assert len(exc.value.errors) == 1


def test_boolean_numbers_are_rejected():
    with pytest.raises(ReportValidationError) as exc:
        parse_report(_payload(sizeBytes=True, fileCount=False, compressionRatio=True, duration=True))
    assert _fields(exc) == {"sizeBytes", "fileCount", "compressionRatio", "duration"}
