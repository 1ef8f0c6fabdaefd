"""
Periodic housekeeping: overdue-backup alerts and report retention.
"""
import logging
from datetime import timedelta

from backup_monitor.core.clock import as_utc
from backup_monitor.models import Alert
from backup_monitor.storage.base import Storage

logger = logging.getLogger(__name__)


def check_overdue_backups(storage: Storage, warning_hours: int, error_hours: int) -> list[Alert]:
    """Raise an alert for every device whose latest report is too old.

    At most one alert per device, severity and latest report: a warning may
    later escalate to an error, but neither repeats until the device reports
    again.
    """
    now = storage.now()
    raised = []
    for report in storage.get_latest_backup_report_per_device():
        last_time = as_utc(report.time)
        age = now - last_time
        if age >= timedelta(hours=error_hours):
            severity = "error"
        elif age >= timedelta(hours=warning_hours):
            severity = "warning"
        else:
            continue

        device = storage.get_device(report.device_id)
        if device is None:
            continue
        title = f"Backup overdue for {device.hostname}"
        if any(
            a.title == title and a.severity == severity and as_utc(a.time) >= last_time
            for a in storage.get_alerts_by_device_id(device.id)
        ):
            continue

        hours = int(age.total_seconds() // 3600)
        alert = storage.create_alert(
            device_id=device.id,
            title=title,
            message=f"No backup report received for {hours} hours (last: {last_time.isoformat()}).",
            severity=severity,
        )
        logger.warning("Alert %s: %s (%dh)", alert.id, title, hours)
        raised.append(alert)
    return raised


def purge_old_reports(storage: Storage, retention_days: int) -> int:
    if retention_days <= 0:
        raise ValueError("retention_days must be positive")
    cutoff = storage.now() - timedelta(days=retention_days)
    deleted = storage.delete_backup_reports_before(cutoff)
    logger.info("Purged %d backup reports older than %s", deleted, cutoff.isoformat())
    return deleted
