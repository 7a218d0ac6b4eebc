"""QuestionOption model for the choices offered by a question."""

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_data.models.database import Base, TimestampMixin


class QuestionOption(TimestampMixin, Base):
    """Model for one selectable option of a choice question.

    Options are presented in ascending ``order``; equal ``order`` values
    fall back to insertion order (ascending ``id``).

    Attributes:
        id: Primary key
        question_id: Foreign key to questions table
        text: Option label
        is_default: Whether the option is pre-selected
        order: Display position among the question's options
        selections: SelectedOption rows that chose this option
    """

    __tablename__ = "question_options"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    question_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to questions table"
    )
    text: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Option label"
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="0",
        comment="Whether the option is pre-selected"
    )
    order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="Display position among the question's options"
    )

    question: Mapped["Question"] = relationship(
        "Question",
        back_populates="options",
    )
    selections: Mapped[list["SelectedOption"]] = relationship(
        "SelectedOption",
        back_populates="option",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_question_options_display", "question_id", "order", "id"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<QuestionOption(id={self.id}, question_id={self.question_id}, "
            f"order={self.order}, is_default={self.is_default})>"
        )
