"""Pydantic schemas for survey definition files.

This module defines the structure and validation rules for survey YAML
files. A definition must conform to these schemas to be imported.
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from survey_data.models.question import QuestionType


class OptionDefinition(BaseModel):
    """A single choice option for choice-type questions.

    Attributes:
        text: Option label shown to respondents
        is_default: Whether the option is pre-selected
    """
    text: str = Field(..., min_length=1, description="Option label")
    is_default: bool = Field(False, description="Whether the option is pre-selected")


class QuestionDefinition(BaseModel):
    """A single question in a survey definition.

    Choice questions (single-choice, multiple-choice) need at least two
    options; every other type must not declare any.
    """
    text: str = Field(..., min_length=1, description="Question prompt")
    type: QuestionType = Field(..., description="Question type")
    is_required: bool = False
    has_other: bool = False
    group: Optional[str] = None
    description: Optional[str] = None
    options: list[OptionDefinition] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_options_for_type(self):
        """Ensure options match the question type."""
        if self.type.is_choice:
            if len(self.options) < 2:
                raise ValueError(
                    f"{self.type.value} question '{self.text}' needs at least 2 options"
                )
            defaults = [option for option in self.options if option.is_default]
            if self.type is QuestionType.SINGLE_CHOICE and len(defaults) > 1:
                raise ValueError(
                    f"single-choice question '{self.text}' has more than one default option"
                )
        elif self.options:
            raise ValueError(f"{self.type.value} question '{self.text}' cannot have options")
        return self


class SurveyDefinition(BaseModel):
    """Complete survey definition.

    Question and option order in the file becomes their display order.
    """
    title: str = Field(..., min_length=3, max_length=200, description="Survey title")
    description: Optional[str] = Field(None, max_length=1000)
    is_published: bool = False
    is_anonymous: bool = False
    is_public: bool = False
    questions: list[QuestionDefinition] = Field(..., min_length=1)
