"""Pydantic schemas for reading stored survey responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AnswerRead(BaseModel):
    """One stored answer."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    question_id: int
    value: str


class SelectedOptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: int
    option_id: int


class ResponseRead(BaseModel):
    """A stored response with its answers and option selections.

    ``user_id`` and ``respondent_email`` are empty for anonymous surveys.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    survey_id: int
    user_id: Optional[int] = None
    respondent_email: Optional[str] = None
    submitted_at: datetime
    answers: list[AnswerRead]
    selected_options: list[SelectedOptionRead]
