from typing import Optional
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field, Column
import sqlalchemy as sa


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=64)
    hashed_password: str
    # "admin" | "manager" | "viewer"
    role: str = Field(default="viewer", max_length=32)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(sa.DateTime(timezone=True), nullable=False),
    )
