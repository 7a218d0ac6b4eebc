"""Database models and session management.

This package contains all SQLAlchemy ORM models and database utilities.
Importing it registers every entity on ``Base.metadata``.
"""

from survey_data.models.database import Base, TimestampMixin, engine, SessionLocal, get_db
from survey_data.models.user import User
from survey_data.models.survey import Survey
from survey_data.models.question import Question, QuestionType
from survey_data.models.question_option import QuestionOption
from survey_data.models.response import Response
from survey_data.models.answer import Answer
from survey_data.models.selected_option import SelectedOption
from survey_data.models.anonymous_response import AnonymousSurveyResponse
from survey_data.models.audit_log import AuditLog
from survey_data.models.database_connection import (
    ConnectionStatus,
    DatabaseConnection,
    DatabaseType,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "engine",
    "SessionLocal",
    "get_db",
    "User",
    "Survey",
    "Question",
    "QuestionType",
    "QuestionOption",
    "Response",
    "Answer",
    "SelectedOption",
    "AnonymousSurveyResponse",
    "AuditLog",
    "DatabaseConnection",
    "DatabaseType",
    "ConnectionStatus",
]
