"""AnonymousSurveyResponse model for one-per-user completion tracking.

Anonymous surveys store their answers on a Response without a user. This
table records *that* a user completed a survey so they cannot submit twice,
without linking them to the answers they gave.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_data.models.database import Base, TimestampMixin, utcnow


class AnonymousSurveyResponse(TimestampMixin, Base):
    """Model for a user's completion of an anonymous survey.

    The (survey_id, user_id) pair is unique: a second insert for the same
    pair fails at the database, which is what serialises concurrent
    double submissions.

    Attributes:
        id: Primary key
        survey_id: Foreign key to surveys table
        user_id: Foreign key to users table
        submitted_at: When the completion was recorded
    """

    __tablename__ = "anonymous_survey_responses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    survey_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("surveys.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to surveys table"
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to users table"
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the completion was recorded"
    )

    survey: Mapped["Survey"] = relationship(
        "Survey",
        back_populates="anonymous_responses",
    )
    user: Mapped["User"] = relationship(
        "User",
        back_populates="anonymous_responses",
    )

    __table_args__ = (
        UniqueConstraint("survey_id", "user_id", name="uq_anonymous_response_survey_user"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<AnonymousSurveyResponse(id={self.id}, survey_id={self.survey_id}, "
            f"user_id={self.user_id})>"
        )
