from typing import Annotated

from fastapi import Depends
from sqlmodel import Session

from backup_monitor.core.config import Settings, get_settings
from backup_monitor.db.session import get_session
from backup_monitor.storage.base import Storage
from backup_monitor.storage.sql import SqlStorage


def get_storage(session: Annotated[Session, Depends(get_session)]) -> Storage:
    return SqlStorage(session)


StorageDep = Annotated[Storage, Depends(get_storage)]
AppSettings = Annotated[Settings, Depends(get_settings)]
