"""Pydantic schemas for API payloads and survey definition files."""

from survey_data.schemas.audit import AuditLogPage, AuditLogRead, AuditUser
from survey_data.schemas.connection import (
    ConnectionCreate,
    ConnectionRead,
    ConnectionTestResult,
    ConnectionUpdate,
    DatabaseSchema,
)
from survey_data.schemas.response import AnswerRead, ResponseRead, SelectedOptionRead
from survey_data.schemas.submission import AnswerSubmission, ResponseSubmission
from survey_data.schemas.survey import OptionDefinition, QuestionDefinition, SurveyDefinition

__all__ = [
    "AuditLogPage",
    "AuditLogRead",
    "AuditUser",
    "ConnectionCreate",
    "ConnectionRead",
    "ConnectionTestResult",
    "ConnectionUpdate",
    "DatabaseSchema",
    "AnswerRead",
    "ResponseRead",
    "SelectedOptionRead",
    "AnswerSubmission",
    "ResponseSubmission",
    "OptionDefinition",
    "QuestionDefinition",
    "SurveyDefinition",
]
