from typing import Optional
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field, Column
import sqlalchemy as sa


class Device(SQLModel, table=True):
    __tablename__ = "devices"
    id: Optional[int] = Field(default=None, primary_key=True)
    hostname: str = Field(max_length=255)
    # Normalized hostname used for de-duplication (see normalize_hostname)
    hostname_key: str = Field(unique=True, index=True, max_length=255)
    ip: str = Field(default="", max_length=64)
    # "server" | "workstation" | "unknown"
    device_type: str = Field(default="unknown", max_length=32)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(sa.DateTime(timezone=True), nullable=False),
    )


def normalize_hostname(hostname: str) -> str:
    return hostname.strip().casefold()
