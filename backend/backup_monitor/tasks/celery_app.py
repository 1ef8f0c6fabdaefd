from celery import Celery
from backup_monitor.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "backup_monitor",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "backup_monitor.tasks.maintenance",
    ],
)

beat_schedule = {
    "overdue-backup-check": {
        "task": "maintenance.check_overdue_backups",
        "schedule": 900.0,  # every 15 minutes
    },
}
if settings.report_cleanup_enabled:
    beat_schedule["report-retention"] = {
        "task": "maintenance.purge_old_reports",
        "schedule": 86400.0,  # daily
    }

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    beat_schedule=beat_schedule,
)
