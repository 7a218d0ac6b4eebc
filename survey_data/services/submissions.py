"""Survey response aggregate.

Two independent capture paths live here:

* Anonymous completion tracking: one ``AnonymousSurveyResponse`` per
  (survey, user) pair, enforced by a unique constraint, recording *that* a
  user completed a survey.
* Granular responses: one ``Response`` grouping an ``Answer`` per question,
  plus ``SelectedOption`` rows for choice questions.
"""

from typing import Iterable, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from survey_data.errors import SubmissionError
from survey_data.logging_config import get_logger
from survey_data.models import AnonymousSurveyResponse, Question, Response, Survey
from survey_data.models.question import QuestionType
from survey_data.schemas.submission import AnswerSubmission
from survey_data.services.associations import load_related
from survey_data.services.repository import (
    anonymous_responses,
    answers as answer_repository,
    responses,
    selected_options,
    surveys,
)

logger = get_logger(__name__)


def record_anonymous_completion(
    db: Session,
    survey_id: int,
    user_id: int,
) -> AnonymousSurveyResponse:
    """Record that ``user_id`` completed ``survey_id``.

    Concurrent or repeated calls for the same pair are resolved by the
    database: exactly one insert succeeds.

    Raises:
        UniquenessViolation: The user already completed this survey
        ReferentialIntegrityViolation: The survey or user does not exist
    """
    completion = anonymous_responses.create(db, survey_id=survey_id, user_id=user_id)
    logger.info(
        f"Recorded anonymous completion of survey {survey_id}",
        extra={"user_id": user_id, "entity_type": "survey", "entity_id": survey_id},
    )
    return completion


def has_completed(db: Session, survey_id: int, user_id: int) -> bool:
    """Check whether a user already completed an anonymous survey."""
    result = db.execute(
        select(AnonymousSurveyResponse.id).where(
            AnonymousSurveyResponse.survey_id == survey_id,
            AnonymousSurveyResponse.user_id == user_id,
        )
    ).first()
    return result is not None


def _load_survey(db: Session, survey_id: int) -> Survey:
    statement = (
        select(Survey)
        .where(Survey.id == survey_id)
        .options(selectinload(Survey.questions).selectinload(Question.options))
    )
    survey = db.execute(statement).scalar_one_or_none()
    if survey is None:
        # Raises EntityNotFoundError with the standard message
        surveys.get(db, survey_id)
    return survey


def _check_required(survey: Survey, submitted: dict[int, AnswerSubmission]) -> None:
    for question in survey.questions:
        if not question.is_required:
            continue
        answer = submitted.get(question.id)
        if answer is None or not answer.value.strip():
            raise SubmissionError(f"Question '{question.text}' is required")


def submit_response(
    db: Session,
    survey_id: int,
    answers: Iterable[AnswerSubmission],
    *,
    user_id: Optional[int] = None,
    respondent_email: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Response:
    """Store a submission as a Response with its Answers and selections.

    For anonymous surveys the respondent identity, IP address and user agent
    are dropped before anything is written.

    Args:
        db: Database session
        survey_id: Survey being answered
        answers: One entry per answered question
        user_id: Submitting user, if authenticated
        respondent_email: Submitting user's email, if known
        ip_address: Client IP
        user_agent: Client user agent

    Returns:
        Response: The persisted response with ``answers`` populated

    Raises:
        EntityNotFoundError: The survey does not exist
        SubmissionError: The survey is unpublished, an answer names a
            question from another survey, or a required question is unanswered
    """
    survey = _load_survey(db, survey_id)
    if not survey.is_published:
        raise SubmissionError("This survey is not currently active")

    questions = {question.id: question for question in survey.questions}
    submitted: dict[int, AnswerSubmission] = {}
    for answer in answers:
        if answer.question_id not in questions:
            raise SubmissionError(
                f"Question {answer.question_id} does not belong to survey {survey_id}"
            )
        submitted[answer.question_id] = answer

    _check_required(survey, submitted)

    if survey.is_anonymous:
        user_id = respondent_email = ip_address = user_agent = None

    response = responses.create(
        db,
        survey_id=survey_id,
        user_id=user_id,
        respondent_email=respondent_email,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    for question_id, answer in submitted.items():
        answer_repository.create(
            db, response_id=response.id, question_id=question_id, value=answer.value
        )

        question = questions[question_id]
        if not QuestionType(question.type).is_choice:
            continue

        valid_options = {option.id for option in question.options}
        for option_id in answer.option_ids():
            if option_id not in valid_options:
                logger.warning(
                    f"Option {option_id} not found for question {question_id}; skipped"
                )
                continue
            selected_options.create(
                db, response_id=response.id, question_id=question_id, option_id=option_id
            )

    db.refresh(response)
    logger.info(
        f"Stored response {response.id} for survey {survey_id} "
        f"with {len(submitted)} answers",
        extra={"entity_type": "survey", "entity_id": survey_id},
    )
    return response


def survey_responses(db: Session, survey_id: int) -> List[Response]:
    """Responses to one survey in submission order.

    Raises:
        EntityNotFoundError: The survey does not exist
    """
    surveys.get(db, survey_id)
    return load_related(db, "Survey", survey_id, "responses")


def user_responses(db: Session, user_id: int, email: Optional[str] = None) -> List[Response]:
    """Responses submitted by a user, matched by id or by respondent email."""
    condition = Response.user_id == user_id
    if email:
        condition = or_(condition, Response.respondent_email == email)
    statement = (
        select(Response)
        .where(condition)
        .order_by(Response.submitted_at.desc(), Response.id.desc())
    )
    return list(db.execute(statement).scalars())
