"""Pydantic schemas for survey submissions."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AnswerSubmission(BaseModel):
    """One answered question in a submission.

    Attributes:
        question_id: Question being answered
        value: Answer text; for choice questions, comma-separated option ids
            (values prefixed with ``OTHER:`` carry free text)
    """
    question_id: int = Field(..., ge=1)
    value: str = Field(default="")

    @field_validator("value", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        """A missing value is stored as an empty answer."""
        return "" if v is None else v

    def option_ids(self) -> list[int]:
        """Option ids named in ``value``; free text and non-numeric parts are ignored."""
        ids = []
        for part in self.value.split(","):
            part = part.strip()
            if part and not part.startswith("OTHER:") and part.isdigit():
                ids.append(int(part))
        return ids


class ResponseSubmission(BaseModel):
    """A full submission for the granular response path."""
    survey_id: int = Field(..., ge=1)
    answers: list[AnswerSubmission] = Field(default_factory=list)
    respondent_email: Optional[str] = None
