from typing import Optional
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field, Column
import sqlalchemy as sa


class ApiKey(SQLModel, table=True):
    __tablename__ = "api_keys"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=128)
    key_hash: str = Field(unique=True, index=True, max_length=64)  # SHA256 hex of the raw key
    prefix: str = Field(max_length=12)                             # first chars of raw key for display
    device_id: Optional[int] = Field(default=None, foreign_key="devices.id")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(sa.DateTime(timezone=True), nullable=False),
    )
    expires_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(sa.DateTime(timezone=True), nullable=True),
    )
    last_used: Optional[datetime] = Field(
        default=None,
        sa_column=Column(sa.DateTime(timezone=True), nullable=True),
    )
    is_active: bool = Field(default=True)
