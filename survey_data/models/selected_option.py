"""SelectedOption model recording which options a response chose."""

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_data.models.database import Base, TimestampMixin


class SelectedOption(TimestampMixin, Base):
    """Model for one option chosen in one response.

    Attributes:
        id: Primary key
        response_id: Foreign key to responses table
        question_id: Foreign key to questions table
        option_id: Foreign key to question_options table
        option: The chosen QuestionOption
    """

    __tablename__ = "selected_options"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    response_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("responses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    option_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("question_options.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    response: Mapped["Response"] = relationship(
        "Response",
        back_populates="selected_options",
    )
    question: Mapped["Question"] = relationship(
        "Question",
        back_populates="selected_options",
    )
    option: Mapped["QuestionOption"] = relationship(
        "QuestionOption",
        back_populates="selections",
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<SelectedOption(id={self.id}, response_id={self.response_id}, "
            f"option_id={self.option_id})>"
        )
