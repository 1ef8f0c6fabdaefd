from fastapi import APIRouter, HTTPException

from backup_monitor.api.serializers import device_dict, report_dict
from backup_monitor.core.deps import StorageDep

router = APIRouter()


@router.get("")
def list_devices(storage: StorageDep):
    return [device_dict(d) for d in storage.get_devices()]


@router.get("/{device_id}")
def get_device(device_id: int, storage: StorageDep):
    device = storage.get_device(device_id)
    if not device:
        raise HTTPException(status_code=404, detail="Device not found")
    return device_dict(device)


@router.get("/{device_id}/backup-reports")
def list_device_reports(device_id: int, storage: StorageDep):
    if not storage.get_device(device_id):
        raise HTTPException(status_code=404, detail="Device not found")
    return [report_dict(r) for r in storage.get_backup_reports_by_device_id(device_id)]
