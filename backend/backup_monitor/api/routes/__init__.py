from fastapi import APIRouter
from backup_monitor.api.routes import stats, devices, reports, alerts, api_keys, users

router = APIRouter()
router.include_router(stats.router,                             tags=["stats"])
router.include_router(devices.router,   prefix="/devices",     tags=["devices"])
router.include_router(reports.router,                           tags=["backup-reports"])
router.include_router(alerts.router,                            tags=["alerts"])
router.include_router(api_keys.router,  prefix="/api-keys",    tags=["api-keys"])
router.include_router(users.router,     prefix="/users",       tags=["users"])
