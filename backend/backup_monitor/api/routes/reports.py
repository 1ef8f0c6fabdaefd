import logging
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Header, HTTPException, Query

from backup_monitor.api.serializers import alert_dict, device_dict, report_dict
from backup_monitor.core.deps import AppSettings, StorageDep
from backup_monitor.schemas.report import DateRange, ReportStatus, ReportValidationError, parse_report
from backup_monitor.services.ingest import process_report
from backup_monitor.storage.base import ReportFilters, Storage

logger = logging.getLogger(__name__)

router = APIRouter()


def _authorize(storage: Storage, api_key: Optional[str], required: bool):
    if not api_key:
        if required:
            raise HTTPException(status_code=401, detail="API key required")
        return
    if not storage.validate_api_key(api_key):
        raise HTTPException(status_code=401, detail="Invalid API key")


@router.post("/backup/report", status_code=201)
def receive_report(
    storage: StorageDep,
    settings: AppSettings,
    payload: Annotated[Any, Body()],
    x_api_key: Annotated[Optional[str], Header()] = None,
):
    """Entry point for backup agents (Duplicati report hook).

    The payload is validated before the API key, so rejected reports never
    touch the key's ``lastUsed``.
    """
    try:
        data = parse_report(payload)
    except ReportValidationError as exc:
        logger.info("Rejected backup report: %s", exc.errors)
        raise HTTPException(
            status_code=400,
            detail={"message": "Invalid backup report data", "errors": exc.errors},
        )

    _authorize(storage, data.api_key or x_api_key, settings.require_api_key)

    try:
        result = process_report(storage, data)
    except Exception:
        logger.exception("Error processing backup report for %s", data.hostname)
        raise HTTPException(status_code=500, detail="Failed to process backup report")

    return {
        "message": "Backup report received successfully",
        "report": report_dict(result.report),
        "device": device_dict(result.device),
        "alert": alert_dict(result.alert),
    }


@router.get("/backup-reports")
def list_backup_reports(
    storage: StorageDep,
    status: Optional[ReportStatus] = None,
    date_range: Annotated[Optional[DateRange], Query(alias="dateRange")] = None,
    device_type: Annotated[Optional[str], Query(alias="deviceType")] = None,
):
    filters = ReportFilters(status=status, date_range=date_range, device_type=device_type)
    return [report_dict(r) for r in storage.get_backup_reports(filters)]


@router.get("/latest-backups")
def latest_backups(storage: StorageDep):
    return [
        {**report_dict(r), "device": device_dict(storage.get_device(r.device_id))}
        for r in storage.get_latest_backup_report_per_device()
    ]
