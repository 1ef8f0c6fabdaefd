"""Storage contract tests, run against both the memory and SQL backends."""
import threading
from datetime import timedelta

import pytest
from argon2 import PasswordHasher

from backup_monitor.core.clock import as_utc
from backup_monitor.storage.base import (
    DuplicateHostnameError, DuplicateUsernameError, ReportFilters, date_range_start,
)


def _report(storage, device, hours_ago: float, status="success", **fields):
    return storage.create_backup_report(
        device_id=device.id, status=status, time=storage.now() - timedelta(hours=hours_ago), **fields,
    )


# ── Devices ───────────────────────────────────────────────────────────────────

def test_get_missing_records_returns_none(storage):
    assert storage.get_device(404) is None
    assert storage.get_alert(404) is None
    assert storage.get_api_key(404) is None
    assert storage.get_user(404) is None


def test_ids_increase_per_collection(storage):
    a = storage.create_device("a")
    b = storage.create_device("b")
    assert b.id > a.id
    alert = storage.create_alert("t", "m", "info")
    assert alert.id == 1


def test_hostname_lookup_is_trimmed_and_case_insensitive(storage):
    device = storage.create_device("  Prod-DB-01 ", ip="10.0.0.1", device_type="server")
    assert device.hostname == "Prod-DB-01"
    assert storage.get_device_by_hostname("prod-db-01").id == device.id
    assert storage.get_device_by_hostname("PROD-DB-01 ").id == device.id
    assert storage.get_device_by_hostname("prod-db-02") is None


def test_duplicate_hostname_rejected(storage):
    storage.create_device("web-01")
    with pytest.raises(DuplicateHostnameError):
        storage.create_device("WEB-01")
    assert storage.count_devices() == 1


def test_report_requires_existing_device(storage):
    with pytest.raises(ValueError):
        storage.create_backup_report(device_id=99, status="success", time=storage.now())


# ── Backup reports ────────────────────────────────────────────────────────────

def test_reports_newest_first(storage):
    device = storage.create_device("web-01")
    older = _report(storage, device, 5)
    newest = _report(storage, device, 1)
    middle = _report(storage, device, 3)
    assert [r.id for r in storage.get_backup_reports()] == [newest.id, middle.id, older.id]
    assert [r.id for r in storage.get_backup_reports_by_device_id(device.id)] == [
        newest.id, middle.id, older.id]


def test_equal_times_put_later_insert_first(storage):
    device = storage.create_device("web-01")
    first = _report(storage, device, 2)
    second = _report(storage, device, 2)
    assert [r.id for r in storage.get_backup_reports()] == [second.id, first.id]
    assert storage.get_latest_backup_report_per_device()[0].id == second.id


def test_filter_by_status(storage):
    device = storage.create_device("web-01")
    _report(storage, device, 1, status="success")
    failed = _report(storage, device, 2, status="failed")
    assert [r.id for r in storage.get_backup_reports(ReportFilters(status="failed"))] == [failed.id]


def test_filter_by_date_range(storage):
    device = storage.create_device("web-01")
    recent = _report(storage, device, 1)
    old = _report(storage, device, 30)
    ancient = _report(storage, device, 24 * 40)

    last_day = storage.get_backup_reports(ReportFilters(date_range="24h"))
    assert [r.id for r in last_day] == [recent.id]

    last_3d = storage.get_backup_reports(ReportFilters(date_range="3d"))
    assert [r.id for r in last_3d] == [recent.id, old.id]

    last_30d = storage.get_backup_reports(ReportFilters(date_range="30d"))
    assert ancient.id not in [r.id for r in last_30d]


def test_date_range_follows_the_clock(storage, clock):
    device = storage.create_device("web-01")
    report = _report(storage, device, 1)
    assert len(storage.get_backup_reports(ReportFilters(date_range="24h"))) == 1
    clock.advance(hours=30)
    assert storage.get_backup_reports(ReportFilters(date_range="24h")) == []
    assert [r.id for r in storage.get_backup_reports(ReportFilters(date_range="3d"))] == [report.id]


def test_filter_by_device_type(storage):
    server = storage.create_device("srv", device_type="server")
    laptop = storage.create_device("wks", device_type="workstation")
    on_server = _report(storage, server, 1)
    _report(storage, laptop, 1)
    result = storage.get_backup_reports(ReportFilters(device_type="server"))
    assert [r.id for r in result] == [on_server.id]


def test_filters_combine(storage):
    server = storage.create_device("srv", device_type="server")
    laptop = storage.create_device("wks", device_type="workstation")
    match = _report(storage, server, 2, status="failed")
    _report(storage, server, 40, status="failed")
    _report(storage, server, 3, status="success")
    _report(storage, laptop, 1, status="failed")
    filters = ReportFilters(status="failed", date_range="24h", device_type="server")
    assert [r.id for r in storage.get_backup_reports(filters)] == [match.id]


def test_unknown_date_range_rejected(storage):
    with pytest.raises(ValueError):
        storage.get_backup_reports(ReportFilters(date_range="1y"))


def test_date_range_start_without_range(clock):
    assert date_range_start(None, clock()) is None


def test_latest_report_per_device(storage):
    a = storage.create_device("a")
    b = storage.create_device("b")
    storage.create_device("never-reported")
    _report(storage, a, 3)
    latest_a = _report(storage, a, 1)
    _report(storage, a, 2)
    latest_b = _report(storage, b, 10, status="failed")

    latest = storage.get_latest_backup_report_per_device()
    assert [r.id for r in latest] == [latest_a.id, latest_b.id]


def test_delete_reports_before_cutoff(storage):
    device = storage.create_device("a")
    keep = _report(storage, device, 1)
    _report(storage, device, 48)
    _report(storage, device, 72)
    assert storage.delete_backup_reports_before(storage.now() - timedelta(hours=24)) == 2
    assert [r.id for r in storage.get_backup_reports()] == [keep.id]


def test_report_defaults(storage):
    device = storage.create_device("a")
    report = _report(storage, device, 1)
    assert report.size == ""
    assert report.size_bytes == 0
    assert report.job_name == ""
    assert report.meta == {}
    assert as_utc(report.received_at) == storage.now()


# ── Alerts ────────────────────────────────────────────────────────────────────

def test_alerts_newest_first_and_recent_limit(storage, clock):
    first = storage.create_alert("first", "m", "info")
    clock.advance(minutes=5)
    second = storage.create_alert("second", "m", "warning")
    clock.advance(minutes=5)
    third = storage.create_alert("third", "m", "error")
    assert [a.id for a in storage.get_alerts()] == [third.id, second.id, first.id]
    assert [a.id for a in storage.get_recent_alerts(2)] == [third.id, second.id]


def test_alert_defaults(storage):
    alert = storage.create_alert("t", "m", "info")
    assert alert.is_read is False
    assert alert.device_id is None
    assert as_utc(alert.time) == storage.now()


def test_mark_alert_as_read_is_idempotent(storage):
    alert = storage.create_alert("t", "m", "warning")
    assert storage.mark_alert_as_read(alert.id).is_read is True
    again = storage.mark_alert_as_read(alert.id)
    assert again.id == alert.id
    assert again.is_read is True


def test_mark_unknown_alert_returns_none(storage):
    assert storage.mark_alert_as_read(12345) is None


# ── API keys ──────────────────────────────────────────────────────────────────

def test_api_key_secret_is_not_stored(storage):
    api_key, raw = storage.create_api_key("agent")
    assert raw.startswith("bmk_")
    assert api_key.key_hash != raw
    assert api_key.prefix == raw[:8]
    assert storage.get_api_key_by_value(raw).id == api_key.id


def test_valid_api_key_updates_last_used(storage, clock):
    api_key, raw = storage.create_api_key("agent", expires_at=clock() + timedelta(days=1))
    clock.advance(minutes=10)
    assert storage.validate_api_key(raw) is True
    assert as_utc(storage.get_api_key(api_key.id).last_used) == clock()


def test_unknown_api_key_rejected(storage):
    assert storage.validate_api_key("bmk_nope") is False


def test_inactive_api_key_rejected(storage):
    api_key, raw = storage.create_api_key("agent", is_active=False)
    assert storage.validate_api_key(raw) is False
    assert storage.get_api_key(api_key.id).last_used is None


def test_expired_api_key_rejected(storage, clock):
    api_key, raw = storage.create_api_key("agent", expires_at=clock() + timedelta(hours=1))
    clock.advance(hours=2)
    assert storage.validate_api_key(raw) is False
    assert storage.get_api_key(api_key.id).last_used is None


def test_update_and_delete_api_key(storage):
    api_key, raw = storage.create_api_key("agent")
    assert storage.update_api_key(api_key.id, is_active=False).is_active is False
    assert storage.validate_api_key(raw) is False
    assert storage.update_api_key(999, is_active=False) is None
    with pytest.raises(ValueError):
        storage.update_api_key(api_key.id, key_hash="x")
    assert storage.delete_api_key(api_key.id) is True
    assert storage.delete_api_key(api_key.id) is False
    assert storage.get_api_keys() == []


# ── Users ─────────────────────────────────────────────────────────────────────

def test_users(storage):
    user = storage.create_user("alice", "s3cret", role="manager")
    assert user.hashed_password != "s3cret"
    assert PasswordHasher().verify(user.hashed_password, "s3cret")
    assert storage.get_user_by_username("alice").id == user.id
    assert storage.get_user_by_username("bob") is None
    with pytest.raises(DuplicateUsernameError):
        storage.create_user("alice", "other")
    assert [u.username for u in storage.get_users()] == ["alice"]


# ── Transactions ──────────────────────────────────────────────────────────────

def test_failed_transaction_leaves_nothing_behind(storage):
    with pytest.raises(RuntimeError):
        with storage.transaction(key="web-01"):
            device = storage.create_device("web-01")
            storage.create_backup_report(device_id=device.id, status="success", time=storage.now())
            raise RuntimeError("boom")
    assert storage.count_devices() == 0
    assert storage.get_backup_reports() == []
    assert storage.get_device_by_hostname("web-01") is None


def test_staged_writes_are_hidden_from_other_threads(memory_storage):
    seen = []

    def read():
        seen.append((
            len(memory_storage.get_backup_reports()),
            memory_storage.get_device_by_hostname("web-01"),
        ))

    with pytest.raises(RuntimeError):
        with memory_storage.transaction(key="web-01"):
            device = memory_storage.create_device("web-01")
            _report(memory_storage, device, 1)
            assert memory_storage.get_device_by_hostname("WEB-01") is device
            assert len(memory_storage.get_backup_reports()) == 1

            reader = threading.Thread(target=read)
            reader.start()
            reader.join()
            raise RuntimeError("boom")

    assert seen == [(0, None)]
    assert memory_storage.get_backup_reports() == []


def test_committed_writes_are_published(memory_storage):
    with memory_storage.transaction(key="web-01"):
        device = memory_storage.create_device("web-01")
        _report(memory_storage, device, 1)

    seen = []
    reader = threading.Thread(target=lambda: seen.append(memory_storage.count_devices()))
    reader.start()
    reader.join()
    assert seen == [1]
    assert len(memory_storage.get_backup_reports()) == 1


def test_publish_rejects_hostname_claimed_outside_transaction(memory_storage):
    with pytest.raises(DuplicateHostnameError):
        with memory_storage.transaction(key="web-01"):
            memory_storage.create_device("web-01")
            claimer = threading.Thread(target=memory_storage.create_device, args=("WEB-01",))
            claimer.start()
            claimer.join()
    assert memory_storage.count_devices() == 1
