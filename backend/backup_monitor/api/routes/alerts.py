from typing import Annotated

from fastapi import APIRouter, HTTPException, Query

from backup_monitor.api.serializers import alert_dict, device_dict
from backup_monitor.core.deps import StorageDep

router = APIRouter()


@router.get("/alerts")
def list_alerts(storage: StorageDep):
    return [alert_dict(a) for a in storage.get_alerts()]


@router.get("/recent-alerts")
def recent_alerts(storage: StorageDep, limit: Annotated[int, Query(ge=1, le=100)] = 5):
    return [
        {
            **alert_dict(a),
            "device": device_dict(storage.get_device(a.device_id)) if a.device_id else None,
        }
        for a in storage.get_recent_alerts(limit)
    ]


@router.patch("/alerts/{alert_id}/read")
def mark_alert_read(alert_id: int, storage: StorageDep):
    alert = storage.mark_alert_as_read(alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert_dict(alert)
