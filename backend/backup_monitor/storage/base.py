"""
Storage interface shared by the in-memory and relational backends.

Entity construction (defaults, hashing, timestamps) lives here so both
backends produce identical records; backends only persist and query.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from backup_monitor.core.clock import Clock, as_utc, utcnow
from backup_monitor.core.security import generate_api_key, hash_api_key, hash_password
from backup_monitor.models import Alert, ApiKey, BackupReport, Device, User
from backup_monitor.models.device import normalize_hostname

logger = logging.getLogger(__name__)

DATE_RANGES = {
    "24h": timedelta(hours=24),
    "3d": timedelta(days=3),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}

_API_KEY_FIELDS = {"name", "device_id", "expires_at", "last_used", "is_active"}


class DuplicateError(Exception):
    pass


class DuplicateHostnameError(DuplicateError):
    pass


class DuplicateUsernameError(DuplicateError):
    pass


@dataclass
class ReportFilters:
    status: Optional[str] = None
    date_range: Optional[str] = None
    device_type: Optional[str] = None


def date_range_start(date_range: Optional[str], now: datetime) -> Optional[datetime]:
    if not date_range:
        return None
    try:
        return now - DATE_RANGES[date_range]
    except KeyError:
        raise ValueError(f"Unknown date range: {date_range!r}") from None


class Storage(ABC):
    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utcnow

    def now(self) -> datetime:
        return self._clock()

    # ── Persistence primitives ────────────────────────────────────────────────

    @abstractmethod
    def transaction(self, key: Optional[str] = None) -> AbstractContextManager:
        """Run a unit of work that is applied completely or not at all.

        Units of work sharing ``key`` are serialized; different keys may run
        concurrently.
        """

    @abstractmethod
    def _add(self, obj):
        """Insert a new entity, assigning its id."""

    @abstractmethod
    def _save(self, obj):
        """Persist changes made to an existing entity."""

    # ── Users ─────────────────────────────────────────────────────────────────

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def get_users(self) -> list[User]: ...

    def create_user(self, username: str, password: str, role: str = "viewer") -> User:
        return self._add(User(
            username=username,
            hashed_password=hash_password(password),
            role=role,
            created_at=self.now(),
        ))

    # ── API keys ──────────────────────────────────────────────────────────────

    @abstractmethod
    def get_api_keys(self) -> list[ApiKey]: ...

    @abstractmethod
    def get_api_key(self, key_id: int) -> Optional[ApiKey]: ...

    @abstractmethod
    def _get_api_key_by_hash(self, key_hash: str) -> Optional[ApiKey]: ...

    @abstractmethod
    def delete_api_key(self, key_id: int) -> bool: ...

    def get_api_key_by_value(self, key: str) -> Optional[ApiKey]:
        return self._get_api_key_by_hash(hash_api_key(key))

    def create_api_key(
        self,
        name: str,
        device_id: Optional[int] = None,
        expires_at: Optional[datetime] = None,
        is_active: bool = True,
    ) -> tuple[ApiKey, str]:
        """Returns the stored key and the raw secret; the secret is not kept."""
        raw = generate_api_key()
        api_key = self._add(ApiKey(
            name=name,
            key_hash=hash_api_key(raw),
            prefix=raw[:8],
            device_id=device_id,
            created_at=self.now(),
            expires_at=as_utc(expires_at),
            is_active=is_active,
        ))
        return api_key, raw

    def update_api_key(self, key_id: int, **changes) -> Optional[ApiKey]:
        unknown = set(changes) - _API_KEY_FIELDS
        if unknown:
            raise ValueError(f"Cannot update API key fields: {sorted(unknown)}")
        api_key = self.get_api_key(key_id)
        if api_key is None:
            return None
        if "expires_at" in changes:
            changes["expires_at"] = as_utc(changes["expires_at"])
        for field, value in changes.items():
            setattr(api_key, field, value)
        return self._save(api_key)

    def validate_api_key(self, key: str) -> bool:
        api_key = self.get_api_key_by_value(key)
        if api_key is None:
            logger.debug("API key rejected: unknown key")
            return False
        if not api_key.is_active:
            logger.debug("API key %s rejected: inactive", api_key.id)
            return False
        now = self.now()
        if api_key.expires_at is not None and as_utc(api_key.expires_at) <= now:
            logger.debug("API key %s rejected: expired", api_key.id)
            return False
        self.update_api_key(api_key.id, last_used=now)
        return True

    # ── Devices ───────────────────────────────────────────────────────────────

    @abstractmethod
    def get_devices(self) -> list[Device]: ...

    @abstractmethod
    def get_device(self, device_id: int) -> Optional[Device]: ...

    @abstractmethod
    def get_device_by_hostname(self, hostname: str) -> Optional[Device]:
        """Matches on the normalized hostname (trimmed, case-insensitive)."""

    @abstractmethod
    def count_devices(self) -> int: ...

    def create_device(self, hostname: str, ip: str = "", device_type: str = "unknown") -> Device:
        hostname = hostname.strip()
        if not hostname:
            raise ValueError("hostname must not be empty")
        return self._add(Device(
            hostname=hostname,
            hostname_key=normalize_hostname(hostname),
            ip=ip or "",
            device_type=device_type or "unknown",
            created_at=self.now(),
        ))

    # ── Backup reports ────────────────────────────────────────────────────────

    @abstractmethod
    def get_backup_reports(self, filters: Optional[ReportFilters] = None) -> list[BackupReport]:
        """Newest first by event time; equal times put the later insert first."""

    @abstractmethod
    def get_latest_backup_report_per_device(self) -> list[BackupReport]:
        """One report per device that has any, ordered by device id."""

    @abstractmethod
    def get_backup_reports_by_device_id(self, device_id: int) -> list[BackupReport]: ...

    @abstractmethod
    def delete_backup_reports_before(self, cutoff: datetime) -> int: ...

    def create_backup_report(self, device_id: int, status: str, time: datetime, **fields) -> BackupReport:
        if self.get_device(device_id) is None:
            raise ValueError(f"Device {device_id} does not exist")
        if "last_verification" in fields:
            fields["last_verification"] = as_utc(fields["last_verification"])
        return self._add(BackupReport(
            device_id=device_id,
            status=status,
            time=as_utc(time),
            received_at=self.now(),
            **fields,
        ))

    # ── Alerts ────────────────────────────────────────────────────────────────

    @abstractmethod
    def get_alerts(self) -> list[Alert]:
        """Newest first."""

    @abstractmethod
    def get_alert(self, alert_id: int) -> Optional[Alert]: ...

    @abstractmethod
    def get_alerts_by_device_id(self, device_id: int) -> list[Alert]: ...

    def get_recent_alerts(self, limit: int) -> list[Alert]:
        return self.get_alerts()[:max(limit, 0)]

    def create_alert(
        self,
        title: str,
        message: str,
        severity: str,
        device_id: Optional[int] = None,
        time: Optional[datetime] = None,
    ) -> Alert:
        return self._add(Alert(
            device_id=device_id,
            title=title,
            message=message,
            severity=severity,
            time=as_utc(time) if time else self.now(),
            is_read=False,
        ))

    def mark_alert_as_read(self, alert_id: int) -> Optional[Alert]:
        alert = self.get_alert(alert_id)
        if alert is None:
            return None
        if not alert.is_read:
            alert.is_read = True
            self._save(alert)
        return alert
