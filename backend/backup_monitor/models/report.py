from typing import Optional
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field, Column
import sqlalchemy as sa


class BackupReport(SQLModel, table=True):
    __tablename__ = "backup_reports"
    id: Optional[int] = Field(default=None, primary_key=True)
    device_id: int = Field(foreign_key="devices.id", index=True)
    # "success" | "warning" | "failed"
    status: str = Field(max_length=16, index=True)
    # Event time reported by the agent, not the ingestion time
    time: datetime = Field(sa_column=Column(sa.DateTime(timezone=True), nullable=False, index=True))
    size: str = Field(default="", max_length=64)  # display string, e.g. "56.2 GB"
    size_bytes: int = Field(default=0, sa_column=Column(sa.BigInteger, nullable=False, default=0))
    duration: int = Field(default=0)  # seconds
    job_name: str = Field(default="", max_length=255)
    error_message: str = Field(default="", sa_column=Column(sa.Text, nullable=False, default=""))
    file_count: int = Field(default=0)

    source_path: str = Field(default="", max_length=1024)
    destination_path: str = Field(default="", max_length=1024)
    compression_ratio: float = Field(default=0)
    changed_files: int = Field(default=0)
    deleted_files: int = Field(default=0)
    added_files: int = Field(default=0)
    modified_files: int = Field(default=0)
    examining_files: int = Field(default=0)

    was_verified: bool = Field(default=False)
    verification_result: str = Field(default="", max_length=16)
    verification_errors: str = Field(default="", sa_column=Column(sa.Text, nullable=False, default=""))
    last_verification: Optional[datetime] = Field(
        default=None,
        sa_column=Column(sa.DateTime(timezone=True), nullable=True),
    )

    meta: dict = Field(default_factory=dict, sa_column=Column("metadata", sa.JSON, nullable=False))
    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(sa.DateTime(timezone=True), nullable=False),
    )
