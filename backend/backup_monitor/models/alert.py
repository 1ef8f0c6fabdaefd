from typing import Optional
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field, Column
import sqlalchemy as sa


class Alert(SQLModel, table=True):
    __tablename__ = "alerts"
    id: Optional[int] = Field(default=None, primary_key=True)
    device_id: Optional[int] = Field(default=None, foreign_key="devices.id", index=True)
    title: str = Field(max_length=255)
    message: str = Field(sa_column=Column(sa.Text, nullable=False))
    # "error" | "warning" | "info"
    severity: str = Field(max_length=16)
    time: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(sa.DateTime(timezone=True), nullable=False, index=True),
    )
    is_read: bool = Field(default=False)
