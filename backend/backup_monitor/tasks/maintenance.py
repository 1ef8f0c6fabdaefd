"""
Celery beat tasks wrapping the maintenance services with a database-backed
storage.
"""
import logging

from sqlmodel import Session

from backup_monitor.tasks.celery_app import celery_app
from backup_monitor.core.config import get_settings
from backup_monitor.db.session import get_engine
from backup_monitor.services import maintenance
from backup_monitor.storage.sql import SqlStorage

logger = logging.getLogger(__name__)


@celery_app.task(name="maintenance.check_overdue_backups")
def check_overdue_backups() -> int:
    settings = get_settings()
    with Session(get_engine()) as session:
        alerts = maintenance.check_overdue_backups(
            SqlStorage(session),
            warning_hours=settings.overdue_warning_hours,
            error_hours=settings.overdue_error_hours,
        )
    return len(alerts)


@celery_app.task(name="maintenance.purge_old_reports")
def purge_old_reports() -> int:
    settings = get_settings()
    if not settings.report_cleanup_enabled:
        logger.info("Report cleanup disabled, skipping")
        return 0
    with Session(get_engine()) as session:
        return maintenance.purge_old_reports(SqlStorage(session), settings.report_retention_days)
