"""AuditLog model for the append-only trail of user actions.

Rows are inserted once and never changed: mapper hooks reject ORM updates
and deletes of persisted entries, and the foreign key to ``users`` is
RESTRICT so history survives attempts to delete the acting user.
"""

from typing import Any, Optional

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, event
from sqlalchemy.orm import Mapped, mapped_column, object_session, relationship

from survey_data.errors import AuditLogImmutableError
from survey_data.models.database import Base, TimestampMixin


class AuditLog(TimestampMixin, Base):
    """Model for one audited action.

    ``action``, ``entity_type`` and ``entity_id`` together describe what
    happened to which logical entity. The audited entity is not a foreign
    key: entries outlive the rows they describe.

    Attributes:
        id: Primary key
        user_id: Acting user (RESTRICT on user deletion)
        action: Verb such as "create", "update", "delete", "import"
        entity_type: Kind of entity acted on (e.g. "survey", "database_connection")
        entity_id: Identifier of the entity acted on
        details: Optional structured context
        ip_address: Optional client IP
        user_agent: Optional client user agent
        user: The acting User
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Foreign key to the acting user"
    )
    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Action performed"
    )
    entity_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Type of the audited entity"
    )
    entity_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Identifier of the audited entity"
    )
    details: Mapped[Optional[Any]] = mapped_column(
        JSON(none_as_null=True),
        nullable=True,
        comment="Structured context for the action"
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    user: Mapped["User"] = relationship(
        "User",
        back_populates="audit_logs",
    )

    __table_args__ = (
        Index("idx_audit_entity", "entity_type", "entity_id"),
        Index("idx_audit_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<AuditLog(id={self.id}, user_id={self.user_id}, action={self.action}, "
            f"entity={self.entity_type}:{self.entity_id})>"
        )


@event.listens_for(AuditLog, "before_update")
def _reject_audit_update(mapper, connection, target: AuditLog) -> None:
    session = object_session(target)
    if session is None or session.is_modified(target, include_collections=False):
        raise AuditLogImmutableError(f"Audit log {target.id} cannot be modified")


@event.listens_for(AuditLog, "before_delete")
def _reject_audit_delete(mapper, connection, target: AuditLog) -> None:
    raise AuditLogImmutableError(f"Audit log {target.id} cannot be deleted")
