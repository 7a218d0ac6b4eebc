"""User model for survey authors, respondents and audited actors."""

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_data.models.database import Base, TimestampMixin

USER_ROLES = ("admin", "user")


class User(TimestampMixin, Base):
    """Model for application users.

    A user may author surveys, submit responses, and appears as the actor
    on every audit log entry. Users with audit history cannot be deleted
    (the audit foreign key is RESTRICT), so deactivate them with
    ``is_active`` instead.

    Attributes:
        id: Primary key
        username: Unique login name
        email: Unique email address
        first_name: Optional given name
        last_name: Optional family name
        role: Either "admin" or "user"
        is_active: Whether the account may sign in
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        unique=True,
        comment="Unique login name"
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Unique email address"
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="user",
        comment="Authorization role (admin or user)"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    surveys: Mapped[list["Survey"]] = relationship(
        "Survey",
        back_populates="creator",
        passive_deletes=True,
    )
    responses: Mapped[list["Response"]] = relationship(
        "Response",
        back_populates="user",
        passive_deletes=True,
    )
    anonymous_responses: Mapped[list["AnonymousSurveyResponse"]] = relationship(
        "AnonymousSurveyResponse",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    # The database refuses the delete; never null out or touch the trail.
    audit_logs: Mapped[list["AuditLog"]] = relationship(
        "AuditLog",
        back_populates="user",
        passive_deletes="all",
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'user')",
            name="ck_users_role",
        ),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
