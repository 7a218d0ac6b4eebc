"""Response model grouping the answers of one survey submission.

This module defines the granular answer-capture path: one Response row per
submission, with one Answer row per question answered and SelectedOption
rows for choice questions.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_data.models.database import Base, TimestampMixin, utcnow


class Response(TimestampMixin, Base):
    """Model for a single survey submission.

    Attributes:
        id: Primary key
        survey_id: Foreign key to surveys table
        user_id: Respondent (NULL for anonymous submissions)
        respondent_email: Respondent email for attributed submissions
        submitted_at: When the submission was received
        ip_address: Client IP (not stored for anonymous surveys)
        user_agent: Client user agent (not stored for anonymous surveys)
        answers: Answer rows of this submission
        selected_options: Option selections of this submission
    """

    __tablename__ = "responses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    survey_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("surveys.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to surveys table"
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Foreign key to users table (NULL when anonymous)"
    )
    respondent_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the submission was received"
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    survey: Mapped["Survey"] = relationship(
        "Survey",
        back_populates="responses",
    )
    user: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="responses",
    )
    answers: Mapped[list["Answer"]] = relationship(
        "Answer",
        back_populates="response",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Answer.id",
    )
    selected_options: Mapped[list["SelectedOption"]] = relationship(
        "SelectedOption",
        back_populates="response",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Response(id={self.id}, survey_id={self.survey_id}, "
            f"user_id={self.user_id})>"
        )
