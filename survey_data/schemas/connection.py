"""Pydantic schemas for database connection API payloads.

Passwords are accepted on create and update but never appear in any
response model.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from survey_data.models.database_connection import ConnectionStatus, DatabaseType


class ConnectionCreate(BaseModel):
    """Payload for registering a database connection."""
    name: str = Field(..., min_length=1, max_length=200)
    type: DatabaseType
    host: Optional[str] = Field(None, max_length=255)
    port: Optional[int] = Field(None, ge=1, le=65535)
    database: str = Field(..., min_length=1, max_length=500)
    username: Optional[str] = Field(None, max_length=200)
    password: Optional[str] = Field(None, max_length=500)
    ssl: bool = False
    options: Optional[dict[str, Any]] = None

    @model_validator(mode='after')
    def host_required_for_servers(self):
        """Server databases need a host; sqlite only needs a file path."""
        if self.type is not DatabaseType.SQLITE and not self.host:
            raise ValueError(f"host is required for {self.type.value} connections")
        return self


class ConnectionUpdate(BaseModel):
    """Partial update of a database connection; omitted fields are unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[DatabaseType] = None
    host: Optional[str] = Field(None, max_length=255)
    port: Optional[int] = Field(None, ge=1, le=65535)
    database: Optional[str] = Field(None, min_length=1, max_length=500)
    username: Optional[str] = Field(None, max_length=200)
    password: Optional[str] = Field(None, max_length=500)
    ssl: Optional[bool] = None
    options: Optional[dict[str, Any]] = None


class ConnectionRead(BaseModel):
    """A registered database connection, without credentials."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: DatabaseType
    host: Optional[str] = None
    port: Optional[int] = None
    database: str
    username: Optional[str] = None
    ssl: bool
    status: ConnectionStatus
    last_tested_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ConnectionTestResult(BaseModel):
    """Outcome of testing a connection."""
    status: ConnectionStatus
    last_tested_at: datetime
    error: Optional[str] = None


class ColumnInfo(BaseModel):
    name: str
    type: str
    nullable: bool
    default: Optional[str] = None


class ForeignKeyInfo(BaseModel):
    columns: list[str]
    referred_table: str
    referred_columns: list[str]


class TableInfo(BaseModel):
    name: str
    columns: list[ColumnInfo]
    primary_key: list[str] = Field(default_factory=list)
    foreign_keys: list[ForeignKeyInfo] = Field(default_factory=list)


class DatabaseSchema(BaseModel):
    """Tables of an external database as reported by its catalog."""
    connection_id: int
    tables: list[TableInfo]
