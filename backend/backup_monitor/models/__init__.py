from backup_monitor.models.user import User
from backup_monitor.models.device import Device
from backup_monitor.models.report import BackupReport
from backup_monitor.models.alert import Alert
from backup_monitor.models.api_key import ApiKey

__all__ = [
    "User",
    "Device",
    "BackupReport",
    "Alert",
    "ApiKey",
]
