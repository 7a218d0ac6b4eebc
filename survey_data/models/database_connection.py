"""DatabaseConnection model for external databases registered by users.

The service can test these connections and introspect their schema; the
credentials are stored here and never returned by the API.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_data.models.database import Base, TimestampMixin


class DatabaseType(str, Enum):
    """Supported external database engines."""
    POSTGRES = "postgres"
    MYSQL = "mysql"
    MSSQL = "mssql"
    SQLITE = "sqlite"


class ConnectionStatus(str, Enum):
    """Outcome of the last connection test."""
    ACTIVE = "active"
    INACTIVE = "inactive"


_TYPE_VALUES = ", ".join(f"'{t.value}'" for t in DatabaseType)


class DatabaseConnection(TimestampMixin, Base):
    """Model for a registered external database connection.

    Attributes:
        id: Primary key
        name: Display name, unique across connections
        type: One of ``DatabaseType`` values
        host: Server host (unused for sqlite)
        port: Server port (unused for sqlite)
        database: Database name, or file path for sqlite
        username: Login user
        password: Login password (write-only through the API)
        ssl: Whether to require TLS
        options: Extra driver options passed as query parameters
        status: Result of the last test ("active" or "inactive")
        last_tested_at: When the connection was last tested
        user_id: User who registered the connection
    """

    __tablename__ = "database_connections"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    host: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    port: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    database: Mapped[str] = mapped_column(String(500), nullable=False)
    username: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    password: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    ssl: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    options: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ConnectionStatus.INACTIVE.value,
        comment="Result of the last connection test"
    )
    last_tested_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="User who registered the connection"
    )

    owner: Mapped[Optional["User"]] = relationship("User")

    __table_args__ = (
        CheckConstraint(f"type IN ({_TYPE_VALUES})", name="ck_database_connections_type"),
    )

    @property
    def database_type(self) -> DatabaseType:
        return DatabaseType(self.type)

    def mark_tested(self, succeeded: bool, tested_at: datetime) -> None:
        """Record the outcome of a connection test."""
        self.status = (
            ConnectionStatus.ACTIVE.value if succeeded else ConnectionStatus.INACTIVE.value
        )
        self.last_tested_at = tested_at

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<DatabaseConnection(id={self.id}, name={self.name!r}, "
            f"type={self.type}, status={self.status})>"
        )
