"""Answer model storing the value given to one question in one response."""

from sqlalchemy import ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_data.models.database import Base, TimestampMixin


class Answer(TimestampMixin, Base):
    """Model for one answered question within a Response.

    By convention a response holds at most one answer per question; the
    database does not enforce it.

    Attributes:
        id: Primary key
        response_id: Foreign key to responses table
        question_id: Foreign key to questions table
        value: Answer text (required; choice answers hold option ids)
    """

    __tablename__ = "answers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    response_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("responses.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to responses table"
    )
    question_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to questions table"
    )
    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Answer value"
    )

    response: Mapped["Response"] = relationship(
        "Response",
        back_populates="answers",
    )
    question: Mapped["Question"] = relationship(
        "Question",
        back_populates="answers",
    )

    __table_args__ = (
        Index("idx_answers_response_question", "response_id", "question_id"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Answer(id={self.id}, response_id={self.response_id}, "
            f"question_id={self.question_id})>"
        )
