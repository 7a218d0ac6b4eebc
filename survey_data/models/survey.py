"""Survey model, the root of the question and response aggregates."""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_data.models.database import Base, TimestampMixin


class Survey(TimestampMixin, Base):
    """Model for a survey definition.

    Deleting a survey removes its questions, responses and anonymous
    completion records (CASCADE). Deleting the creating user keeps the
    survey and clears ``user_id``.

    Attributes:
        id: Primary key
        title: Survey title
        description: Optional long description
        user_id: Creator (nullable, SET NULL on user deletion)
        is_published: Whether the survey accepts submissions
        is_anonymous: Whether responses are stored without respondent identity
        is_public: Whether the survey is open to all users without assignment
    """

    __tablename__ = "surveys"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Survey title"
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Foreign key to the creating user"
    )

    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    creator: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="surveys",
    )
    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="survey",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[Question.order, Question.id]",
    )
    responses: Mapped[list["Response"]] = relationship(
        "Response",
        back_populates="survey",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    anonymous_responses: Mapped[list["AnonymousSurveyResponse"]] = relationship(
        "AnonymousSurveyResponse",
        back_populates="survey",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Survey(id={self.id}, title={self.title!r}, "
            f"published={self.is_published}, anonymous={self.is_anonymous})>"
        )
