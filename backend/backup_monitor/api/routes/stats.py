from fastapi import APIRouter

from backup_monitor.core.deps import StorageDep
from backup_monitor.services.stats import get_dashboard_stats

router = APIRouter()


@router.get("/stats")
def dashboard_stats(storage: StorageDep):
    return get_dashboard_stats(storage).to_dict()
