"""Pydantic schemas for audit log API payloads."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuditUser(BaseModel):
    """Acting user as embedded in audit log listings."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str


class AuditLogRead(BaseModel):
    """One audit log entry."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    action: str
    entity_type: str
    entity_id: int
    details: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    user: Optional[AuditUser] = None


class AuditLogPage(BaseModel):
    """A page of audit log entries, newest first."""
    logs: list[AuditLogRead]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
