"""
In-memory storage backend, used by the test suite.

Records live in per-model dicts keyed by id. Ids come from an injected
sequence per collection and are never reused, even after a rollback.
Inserts made inside ``transaction()`` are staged per thread and published
together when the outermost block exits cleanly; until then only the
writing thread sees them.
"""
import itertools
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Optional

from backup_monitor.core.clock import Clock, as_utc
from backup_monitor.models import Alert, ApiKey, BackupReport, Device, User
from backup_monitor.models.device import normalize_hostname
from backup_monitor.storage.base import (
    DuplicateHostnameError, DuplicateUsernameError, ReportFilters, Storage, date_range_start,
)

_MODELS = (User, ApiKey, Device, BackupReport, Alert)


class IdSequence:
    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            return next(self._counter)


def _newest_first(rows):
    return sorted(rows, key=lambda r: (as_utc(r.time), r.id), reverse=True)


class MemoryStorage(Storage):
    def __init__(self, clock: Optional[Clock] = None,
                 id_factory: Callable[[], Callable[[], int]] = IdSequence):
        super().__init__(clock)
        self._tables: dict[type, dict[int, object]] = {model: {} for model in _MODELS}
        self._ids = {model: id_factory() for model in _MODELS}
        self._hostnames: dict[str, int] = {}
        self._lock = threading.RLock()
        self._key_locks: dict[str, threading.Lock] = {}
        self._local = threading.local()

    # ── Persistence primitives ────────────────────────────────────────────────

    def _lock_for(self, key: Optional[str]) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key or "", threading.Lock())

    def _pending(self) -> Optional[list]:
        return getattr(self._local, "pending", None)

    @contextmanager
    def transaction(self, key: Optional[str] = None):
        if self._pending() is not None:
            yield
            return
        with self._lock_for(key):
            self._local.pending = []
            try:
                yield
                self._publish(self._local.pending)
            finally:
                self._local.pending = None

    def _publish(self, pending: list):
        with self._lock:
            # Writers outside a transaction may have claimed a name meanwhile.
            for obj in pending:
                if isinstance(obj, Device) and obj.hostname_key in self._hostnames:
                    raise DuplicateHostnameError(obj.hostname)
                if isinstance(obj, User) and any(
                    u.username == obj.username for u in self._tables[User].values()
                ):
                    raise DuplicateUsernameError(obj.username)
            for obj in pending:
                self._insert(obj)

    def _insert(self, obj):
        self._tables[type(obj)][obj.id] = obj
        if isinstance(obj, Device):
            self._hostnames[obj.hostname_key] = obj.id

    def _add(self, obj):
        model = type(obj)
        pending = self._pending()
        with self._lock:
            if model is Device and self._find_device(obj.hostname_key) is not None:
                raise DuplicateHostnameError(obj.hostname)
            if model is User and self.get_user_by_username(obj.username) is not None:
                raise DuplicateUsernameError(obj.username)
            obj.id = self._ids[model]()
            if pending is None:
                self._insert(obj)
        if pending is not None:
            pending.append(obj)
        return obj

    def _save(self, obj):
        # Records are held by reference; attribute changes are already visible.
        return obj

    def _rows(self, model) -> list:
        with self._lock:
            rows = list(self._tables[model].values())
        rows.extend(obj for obj in self._pending() or () if type(obj) is model)
        return rows

    def _get(self, model, record_id: int):
        for obj in self._pending() or ():
            if type(obj) is model and obj.id == record_id:
                return obj
        return self._tables[model].get(record_id)

    def _find_device(self, hostname_key: str) -> Optional[Device]:
        for obj in self._pending() or ():
            if isinstance(obj, Device) and obj.hostname_key == hostname_key:
                return obj
        with self._lock:
            device_id = self._hostnames.get(hostname_key)
            return self._tables[Device].get(device_id) if device_id is not None else None

    # ── Users ─────────────────────────────────────────────────────────────────

    def get_user(self, user_id: int) -> Optional[User]:
        return self._get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._rows(User) if u.username == username), None)

    def get_users(self) -> list[User]:
        return sorted(self._rows(User), key=lambda u: u.id)

    # ── API keys ──────────────────────────────────────────────────────────────

    def get_api_keys(self) -> list[ApiKey]:
        return sorted(self._rows(ApiKey), key=lambda k: k.id)

    def get_api_key(self, key_id: int) -> Optional[ApiKey]:
        return self._get(ApiKey, key_id)

    def _get_api_key_by_hash(self, key_hash: str) -> Optional[ApiKey]:
        return next((k for k in self._rows(ApiKey) if k.key_hash == key_hash), None)

    def delete_api_key(self, key_id: int) -> bool:
        with self._lock:
            return self._tables[ApiKey].pop(key_id, None) is not None

    # ── Devices ───────────────────────────────────────────────────────────────

    def get_devices(self) -> list[Device]:
        return sorted(self._rows(Device), key=lambda d: d.id)

    def get_device(self, device_id: int) -> Optional[Device]:
        return self._get(Device, device_id)

    def get_device_by_hostname(self, hostname: str) -> Optional[Device]:
        return self._find_device(normalize_hostname(hostname))

    def count_devices(self) -> int:
        return len(self._rows(Device))

    # ── Backup reports ────────────────────────────────────────────────────────

    def get_backup_reports(self, filters: Optional[ReportFilters] = None) -> list[BackupReport]:
        filters = filters or ReportFilters()
        reports = self._rows(BackupReport)
        if filters.status:
            reports = [r for r in reports if r.status == filters.status]
        start = date_range_start(filters.date_range, self.now())
        if start is not None:
            reports = [r for r in reports if as_utc(r.time) >= start]
        if filters.device_type:
            device_ids = {d.id for d in self._rows(Device) if d.device_type == filters.device_type}
            reports = [r for r in reports if r.device_id in device_ids]
        return _newest_first(reports)

    def get_latest_backup_report_per_device(self) -> list[BackupReport]:
        latest: dict[int, BackupReport] = {}
        for report in _newest_first(self._rows(BackupReport)):
            latest.setdefault(report.device_id, report)
        return [latest[device_id] for device_id in sorted(latest)]

    def get_backup_reports_by_device_id(self, device_id: int) -> list[BackupReport]:
        return _newest_first(r for r in self._rows(BackupReport) if r.device_id == device_id)

    def delete_backup_reports_before(self, cutoff: datetime) -> int:
        cutoff = as_utc(cutoff)
        with self._lock:
            table = self._tables[BackupReport]
            stale = [rid for rid, r in table.items() if as_utc(r.time) < cutoff]
            for rid in stale:
                del table[rid]
        return len(stale)

    # ── Alerts ────────────────────────────────────────────────────────────────

    def get_alerts(self) -> list[Alert]:
        return _newest_first(self._rows(Alert))

    def get_alert(self, alert_id: int) -> Optional[Alert]:
        return self._get(Alert, alert_id)

    def get_alerts_by_device_id(self, device_id: int) -> list[Alert]:
        return _newest_first(a for a in self._rows(Alert) if a.device_id == device_id)
