"""
Seed script: creates the admin user and a few demo devices.
Run manually: python -m scripts.seed
"""
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlmodel import Session

from backup_monitor.db.session import get_engine, create_all_tables
from backup_monitor.core.config import get_settings
from backup_monitor.storage.sql import SqlStorage

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("seed")

DEMO_DEVICES = [
    ("PROD-DB-01",      "192.168.1.101", "server"),
    ("APP-WEB-02",      "192.168.1.122", "server"),
    ("WORKSTATION-HR5", "192.168.2.45",  "workstation"),
    ("FILE-SRV-01",     "192.168.1.110", "server"),
]


def seed():
    settings = get_settings()
    create_all_tables()

    with Session(get_engine()) as s:
        storage = SqlStorage(s)

        if not storage.get_user_by_username(settings.admin_username):
            storage.create_user(settings.admin_username, settings.admin_password, role="admin")
            logger.info("Created admin: %s", settings.admin_username)

        for hostname, ip, device_type in DEMO_DEVICES:
            if not storage.get_device_by_hostname(hostname):
                storage.create_device(hostname, ip=ip, device_type=device_type)
                logger.info("Created device: %s", hostname)

    logger.info("Seed complete")


if __name__ == "__main__":
    seed()
