"""Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import os
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set required environment variables for tests BEFORE importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test_jwt_secret_for_testing_only")
os.environ.setdefault("ENVIRONMENT", "development")

from survey_data.models import (
    AuditLog,
    Base,
    Question,
    QuestionOption,
    Survey,
    User,
)
from survey_data.models.database import enable_sqlite_foreign_keys


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with SQLite in-memory database.

    Yields:
        Engine: SQLAlchemy engine for testing

    Note:
        A single shared connection (StaticPool) keeps the in-memory database
        visible to the TestClient's worker threads. Foreign keys are on.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,  # Set to True for SQL debugging
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def file_engine(tmp_path):
    """File-backed SQLite engine for tests that need real concurrent connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'survey_data.db'}",
        connect_args={"timeout": 30, "check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session.

    Note:
        Session is rolled back after each test to ensure isolation.
    """
    TestSessionLocal = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )

    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def user(db_session) -> User:
    """A committed regular user."""
    user = User(username="alice", email="alice@example.com", role="user")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def admin(db_session) -> User:
    """A committed administrator."""
    admin = User(username="root", email="root@example.com", role="admin")
    db_session.add(admin)
    db_session.commit()
    return admin


@pytest.fixture
def survey(db_session, user) -> Survey:
    """A committed, published survey created by ``user``."""
    survey = Survey(title="Team Pulse", user_id=user.id, is_published=True)
    db_session.add(survey)
    db_session.commit()
    return survey


@pytest.fixture
def choice_question(db_session, survey) -> Question:
    """A single-choice question with three options."""
    question = Question(
        survey_id=survey.id,
        text="How was your week?",
        type="single-choice",
        is_required=True,
        order=0,
    )
    db_session.add(question)
    db_session.flush()
    for position, text in enumerate(["Good", "Okay", "Bad"]):
        db_session.add(QuestionOption(question_id=question.id, text=text, order=position))
    db_session.commit()
    return question


@pytest.fixture
def text_question(db_session, survey) -> Question:
    """An optional free-text question."""
    question = Question(survey_id=survey.id, text="Anything else?", type="text", order=1)
    db_session.add(question)
    db_session.commit()
    return question


@pytest.fixture
def audit_entry(db_session, user) -> AuditLog:
    """A committed audit entry written by ``user``."""
    entry = AuditLog(
        user_id=user.id,
        action="create",
        entity_type="survey",
        entity_id=1,
    )
    db_session.add(entry)
    db_session.commit()
    return entry
