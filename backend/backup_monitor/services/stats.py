from dataclasses import dataclass, asdict

from pydantic.alias_generators import to_camel

from backup_monitor.storage.base import Storage


@dataclass
class DashboardStats:
    total_devices: int
    healthy_backups: int
    warning_backups: int
    failed_backups: int

    def to_dict(self) -> dict:
        return {to_camel(k): v for k, v in asdict(self).items()}


def get_dashboard_stats(storage: Storage) -> DashboardStats:
    """Status counters cover each device's latest report only.

    Devices that never reported count towards ``total_devices`` alone, so the
    three counters need not add up to it.
    """
    counts = {"success": 0, "warning": 0, "failed": 0}
    for report in storage.get_latest_backup_report_per_device():
        if report.status in counts:
            counts[report.status] += 1
    return DashboardStats(
        total_devices=storage.count_devices(),
        healthy_backups=counts["success"],
        warning_backups=counts["warning"],
        failed_backups=counts["failed"],
    )
