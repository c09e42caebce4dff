"""
SQLModel base classes

Shared fields and mixins
"""
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    """Server-assigned timestamp for every *_at field"""
    return datetime.now(timezone.utc)


class SQLModelBase(SQLModel):
    """
    Base configuration for every schema class
    """
    model_config = {
        "from_attributes": True,
        "populate_by_name": True,
        "str_strip_whitespace": True,
    }


class TimestampMixin(SQLModel):
    """Timestamp columns for table models"""
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        description="Creation time"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        description="Last update time"
    )


class IDMixin(SQLModel):
    """Opaque string primary key"""
    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        description="Document ID"
    )


class TimestampResponse(SQLModelBase):
    """Response base with timestamps"""
    id: str
    created_at: datetime
    updated_at: Optional[datetime] = None
