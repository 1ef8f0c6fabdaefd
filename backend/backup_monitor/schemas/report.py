"""
Inbound backup report schema.

Agents post camelCase JSON (``sizeBytes``, ``jobName`` ...). Required fields
are ``hostname``, ``status`` and ``time``; everything else falls back to an
empty value so downstream code never deals with missing fields.
"""
import re
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from backup_monitor.core.clock import as_utc

ReportStatus = Literal["success", "warning", "failed"]
DateRange = Literal["24h", "3d", "7d", "30d"]

# .NET TimeSpan as emitted by Duplicati: [d.]hh:mm:ss[.fffffff]
_TIMESPAN_RE = re.compile(r"^(?:(\d+)\.)?(\d+):(\d{1,2}):(\d{1,2})(?:\.(\d+))?$")


class ReportValidationError(ValueError):
    """Raised with one entry per offending field."""

    def __init__(self, errors: list[dict]):
        super().__init__("Invalid backup report data")
        self.errors = errors


class ReportIn(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    hostname: str = Field(min_length=1, max_length=255)
    status: ReportStatus
    time: datetime

    size: str = ""
    size_bytes: int = Field(default=0, ge=0)
    duration: int = Field(default=0, ge=0)
    job_name: str = ""
    error_message: str = ""
    file_count: int = Field(default=0, ge=0)

    source_path: str = ""
    destination_path: str = ""
    compression_ratio: float = 0
    changed_files: int = 0
    deleted_files: int = 0
    added_files: int = 0
    modified_files: int = 0
    examining_files: int = 0

    was_verified: bool = False
    verification_result: Optional[ReportStatus] = None
    verification_errors: str = ""
    last_verification: Optional[datetime] = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    # Device creation hints
    ip: str = ""
    device_type: str = "unknown"

    api_key: Optional[str] = None

    @field_validator("time", "last_verification")
    @classmethod
    def _normalize_tz(cls, v):
        return as_utc(v)

    @field_validator(
        "size_bytes", "duration", "file_count", "compression_ratio",
        "changed_files", "deleted_files", "added_files", "modified_files", "examining_files",
        mode="before",
    )
    @classmethod
    def _reject_booleans(cls, v):
        # bool is an int subclass; lax mode would store true as 1
        if isinstance(v, bool):
            raise ValueError("must be a number, not a boolean")
        return v

    @field_validator("duration", mode="before")
    @classmethod
    def _parse_timespan(cls, v):
        if isinstance(v, str):
            m = _TIMESPAN_RE.match(v.strip())
            if m:
                days, hours, minutes, seconds, _ = m.groups()
                return int(days or 0) * 86400 + int(hours) * 3600 + int(minutes) * 60 + int(seconds)
        return v

    @field_validator("device_type")
    @classmethod
    def _default_device_type(cls, v: str) -> str:
        return v or "unknown"


def parse_report(payload: Any) -> ReportIn:
    if not isinstance(payload, dict):
        raise ReportValidationError([{"field": "", "message": "Expected a JSON object"}])
    try:
        return ReportIn.model_validate(payload)
    except ValidationError as exc:
        raise ReportValidationError([
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]) from exc
