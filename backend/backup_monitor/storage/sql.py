"""
Relational storage backend on top of a SQLModel session.

Outside ``transaction()`` every write commits immediately; inside it writes
are flushed and committed together when the block exits. Concurrency between
units of work is left to the database: hostname uniqueness is enforced by
the ``devices.hostname_key`` unique index.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import delete as sql_delete, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from backup_monitor.core.clock import Clock
from backup_monitor.models import Alert, ApiKey, BackupReport, Device, User
from backup_monitor.models.device import normalize_hostname
from backup_monitor.storage.base import (
    DuplicateHostnameError, DuplicateUsernameError, ReportFilters, Storage, date_range_start,
)


class SqlStorage(Storage):
    def __init__(self, session: Session, clock: Optional[Clock] = None):
        super().__init__(clock)
        self.session = session
        self._in_transaction = False

    # ── Persistence primitives ────────────────────────────────────────────────

    @contextmanager
    def transaction(self, key: Optional[str] = None):
        if self._in_transaction:
            yield
            return
        self._in_transaction = True
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._in_transaction = False

    def _write(self, obj=None):
        if self._in_transaction:
            self.session.flush()
        else:
            self.session.commit()
            if obj is not None:
                self.session.refresh(obj)

    def _add(self, obj):
        self.session.add(obj)
        try:
            self._write(obj)
        except IntegrityError as exc:
            if not self._in_transaction:
                self.session.rollback()
            if isinstance(obj, Device):
                raise DuplicateHostnameError(obj.hostname) from exc
            if isinstance(obj, User):
                raise DuplicateUsernameError(obj.username) from exc
            raise
        return obj

    def _save(self, obj):
        self.session.add(obj)
        self._write(obj)
        return obj

    # ── Users ─────────────────────────────────────────────────────────────────

    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.username == username)).first()

    def get_users(self) -> list[User]:
        return list(self.session.exec(select(User).order_by(User.id)).all())

    # ── API keys ──────────────────────────────────────────────────────────────

    def get_api_keys(self) -> list[ApiKey]:
        return list(self.session.exec(select(ApiKey).order_by(ApiKey.id)).all())

    def get_api_key(self, key_id: int) -> Optional[ApiKey]:
        return self.session.get(ApiKey, key_id)

    def _get_api_key_by_hash(self, key_hash: str) -> Optional[ApiKey]:
        return self.session.exec(select(ApiKey).where(ApiKey.key_hash == key_hash)).first()

    def delete_api_key(self, key_id: int) -> bool:
        api_key = self.session.get(ApiKey, key_id)
        if not api_key:
            return False
        self.session.delete(api_key)
        self._write()
        return True

    # ── Devices ───────────────────────────────────────────────────────────────

    def get_devices(self) -> list[Device]:
        return list(self.session.exec(select(Device).order_by(Device.id)).all())

    def get_device(self, device_id: int) -> Optional[Device]:
        return self.session.get(Device, device_id)

    def get_device_by_hostname(self, hostname: str) -> Optional[Device]:
        return self.session.exec(
            select(Device).where(Device.hostname_key == normalize_hostname(hostname))
        ).first()

    def count_devices(self) -> int:
        return self.session.exec(select(func.count()).select_from(Device)).one()

    # ── Backup reports ────────────────────────────────────────────────────────

    def get_backup_reports(self, filters: Optional[ReportFilters] = None) -> list[BackupReport]:
        filters = filters or ReportFilters()
        stmt = select(BackupReport)
        if filters.status:
            stmt = stmt.where(BackupReport.status == filters.status)
        start = date_range_start(filters.date_range, self.now())
        if start is not None:
            stmt = stmt.where(BackupReport.time >= start)
        if filters.device_type:
            stmt = (
                stmt.join(Device, Device.id == BackupReport.device_id)
                .where(Device.device_type == filters.device_type)
            )
        stmt = stmt.order_by(BackupReport.time.desc(), BackupReport.id.desc())
        return list(self.session.exec(stmt).all())

    def get_latest_backup_report_per_device(self) -> list[BackupReport]:
        ranked = select(
            BackupReport.id,
            func.row_number().over(
                partition_by=BackupReport.device_id,
                order_by=(BackupReport.time.desc(), BackupReport.id.desc()),
            ).label("rn"),
        ).subquery()
        stmt = (
            select(BackupReport)
            .join(ranked, ranked.c.id == BackupReport.id)
            .where(ranked.c.rn == 1)
            .order_by(BackupReport.device_id)
        )
        return list(self.session.exec(stmt).all())

    def get_backup_reports_by_device_id(self, device_id: int) -> list[BackupReport]:
        return list(self.session.exec(
            select(BackupReport)
            .where(BackupReport.device_id == device_id)
            .order_by(BackupReport.time.desc(), BackupReport.id.desc())
        ).all())

    def delete_backup_reports_before(self, cutoff: datetime) -> int:
        result = self.session.execute(
            sql_delete(BackupReport)
            .where(BackupReport.time < cutoff)
            .execution_options(synchronize_session="fetch")
        )
        self._write()
        return result.rowcount

    # ── Alerts ────────────────────────────────────────────────────────────────

    def get_alerts(self) -> list[Alert]:
        return list(self.session.exec(
            select(Alert).order_by(Alert.time.desc(), Alert.id.desc())
        ).all())

    def get_recent_alerts(self, limit: int) -> list[Alert]:
        return list(self.session.exec(
            select(Alert).order_by(Alert.time.desc(), Alert.id.desc()).limit(max(limit, 0))
        ).all())

    def get_alert(self, alert_id: int) -> Optional[Alert]:
        return self.session.get(Alert, alert_id)

    def get_alerts_by_device_id(self, device_id: int) -> list[Alert]:
        return list(self.session.exec(
            select(Alert)
            .where(Alert.device_id == device_id)
            .order_by(Alert.time.desc(), Alert.id.desc())
        ).all())
