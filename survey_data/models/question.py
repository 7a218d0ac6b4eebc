"""Question model for survey questions."""

from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_data.models.database import Base, TimestampMixin


class QuestionType(str, Enum):
    """Valid question types."""
    SINGLE_CHOICE = "single-choice"
    MULTIPLE_CHOICE = "multiple-choice"
    RATING = "rating"
    TEXT = "text"
    DATE = "date"
    NUMBER = "number"

    @property
    def is_choice(self) -> bool:
        return self in (QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE)


_TYPE_VALUES = ", ".join(f"'{t.value}'" for t in QuestionType)


class Question(TimestampMixin, Base):
    """Model for a single question belonging to a survey.

    Options, answers and option selections are owned by the question and
    removed with it (CASCADE).

    Attributes:
        id: Primary key
        survey_id: Foreign key to surveys table
        text: Question prompt
        type: One of ``QuestionType`` values
        is_required: Whether a submission must answer this question
        has_other: Whether a free-text "other" choice is offered
        group: Optional section label
        description: Optional help text
        order: Display position within the survey
    """

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    survey_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("surveys.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to surveys table"
    )

    text: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Question prompt"
    )
    type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="Question type (single-choice, multiple-choice, rating, ...)"
    )
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_other: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    group: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Display position within the survey"
    )

    survey: Mapped["Survey"] = relationship(
        "Survey",
        back_populates="questions",
    )
    options: Mapped[list["QuestionOption"]] = relationship(
        "QuestionOption",
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[QuestionOption.order, QuestionOption.id]",
    )
    answers: Mapped[list["Answer"]] = relationship(
        "Answer",
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    selected_options: Mapped[list["SelectedOption"]] = relationship(
        "SelectedOption",
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(f"type IN ({_TYPE_VALUES})", name="ck_questions_type"),
    )

    @property
    def question_type(self) -> QuestionType:
        return QuestionType(self.type)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Question(id={self.id}, survey_id={self.survey_id}, "
            f"type={self.type}, order={self.order})>"
        )
