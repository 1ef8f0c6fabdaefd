"""
Report ingestion: find-or-create the device, store the report, and raise an
alert for non-success results, as one unit of work.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from backup_monitor.models import Alert, BackupReport, Device
from backup_monitor.models.device import normalize_hostname
from backup_monitor.schemas.report import ReportIn
from backup_monitor.storage.base import DuplicateHostnameError, Storage

logger = logging.getLogger(__name__)

ALERT_SEVERITY = {"failed": "error", "warning": "warning"}

# ReportIn fields copied verbatim onto BackupReport
_REPORT_FIELDS = (
    "size", "size_bytes", "duration", "job_name", "error_message", "file_count",
    "source_path", "destination_path", "compression_ratio",
    "changed_files", "deleted_files", "added_files", "modified_files", "examining_files",
    "was_verified", "verification_errors", "last_verification",
)


@dataclass
class IngestResult:
    report: BackupReport
    device: Device
    alert: Optional[Alert] = None


def _store(storage: Storage, data: ReportIn) -> IngestResult:
    device = storage.get_device_by_hostname(data.hostname)
    if device is None:
        device = storage.create_device(data.hostname, ip=data.ip, device_type=data.device_type)
        logger.info("Registered device %s (id=%s)", device.hostname, device.id)

    fields = {name: getattr(data, name) for name in _REPORT_FIELDS}
    report = storage.create_backup_report(
        device_id=device.id,
        status=data.status,
        time=data.time,
        verification_result=data.verification_result or "",
        meta=dict(data.metadata),
        **fields,
    )

    alert = None
    severity = ALERT_SEVERITY.get(data.status)
    if severity:
        alert = storage.create_alert(
            device_id=device.id,
            title=f"Backup {data.status} for {device.hostname}",
            message=data.error_message or f"Backup completed with {data.status} status.",
            severity=severity,
        )
    return IngestResult(report=report, device=device, alert=alert)


def process_report(storage: Storage, data: ReportIn) -> IngestResult:
    # A concurrent writer may register the same hostname between our lookup
    # and insert; the second attempt then finds its device.
    for attempt in range(2):
        try:
            with storage.transaction(key=normalize_hostname(data.hostname)):
                result = _store(storage, data)
            break
        except DuplicateHostnameError:
            if attempt:
                raise
            logger.info("Device %s registered concurrently, retrying", data.hostname)

    logger.info("Stored %s report %s for %s", data.status, result.report.id, result.device.hostname)
    if result.alert is not None:
        logger.warning("Alert %s: %s", result.alert.id, result.alert.title)
    return result
