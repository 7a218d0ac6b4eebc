"""Survey import, deletion, submission, response listing and option endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from survey_data.config import get_settings
from survey_data.errors import SubmissionError
from survey_data.logging_config import get_logger
from survey_data.middleware.auth import AuthenticatedUser, authenticate, require_admin
from survey_data.models import Question, Response
from survey_data.models.database import get_db
from survey_data.schemas.response import ResponseRead
from survey_data.schemas.submission import ResponseSubmission
from survey_data.services.audit_trail import AuditTrail
from survey_data.services.repository import list_options_in_display_order, questions, surveys
from survey_data.services.submissions import (
    record_anonymous_completion,
    submit_response,
    survey_responses,
)
from survey_data.services.survey_importer import (
    SurveyImporter,
    import_definition,
    parse_definition,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/surveys")


@router.post("/import", status_code=201)
async def import_survey(
    request: Request,
    user: AuthenticatedUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    """Create a survey from a YAML definition sent as the request body."""
    definition = parse_definition(await request.body(), source="upload")
    survey = import_definition(db, definition, user_id=user.id)
    db.commit()
    return {"id": survey.id, "title": survey.title, "questions": len(survey.questions)}


@router.get("/definitions", dependencies=[Depends(require_admin)])
async def list_survey_definitions() -> list[str]:
    """Names of the YAML definitions available in the surveys directory."""
    return SurveyImporter(get_settings().surveys_dir).list_definitions()


@router.post("/definitions/{name}/import", status_code=201)
async def import_survey_definition(
    name: str,
    user: AuthenticatedUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    """Create a survey from a definition file in the surveys directory."""
    survey = SurveyImporter(get_settings().surveys_dir).import_file(db, name, user_id=user.id)
    db.commit()
    return {"id": survey.id, "title": survey.title, "questions": len(survey.questions)}


@router.post("/{survey_id}/responses", status_code=201, response_model=ResponseRead)
async def create_response(
    survey_id: int,
    payload: ResponseSubmission,
    request: Request,
    user: AuthenticatedUser = Depends(authenticate),
    db: Session = Depends(get_db),
) -> ResponseRead:
    """Submit answers to a survey.

    Anonymous, non-public surveys record the user's completion separately
    from the (identity-free) answers, so a second submission is refused by
    the completion table's unique constraint.
    """
    if payload.survey_id != survey_id:
        raise HTTPException(status_code=400, detail="survey_id does not match the URL")

    survey = surveys.get(db, survey_id)

    if survey.is_anonymous:
        if not survey.is_public:
            record_anonymous_completion(db, survey_id, user.id)
    else:
        existing = db.execute(
            select(Response.id).where(
                Response.survey_id == survey_id, Response.user_id == user.id
            )
        ).first()
        if existing is not None:
            raise SubmissionError("You have already submitted a response for this survey")

    response = submit_response(
        db,
        survey_id,
        payload.answers,
        user_id=user.id,
        respondent_email=payload.respondent_email or user.email,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    db.commit()

    return ResponseRead.model_validate(response)


@router.get("/{survey_id}/responses", response_model=list[ResponseRead])
async def list_survey_responses(
    survey_id: int,
    user: AuthenticatedUser = Depends(authenticate),
    db: Session = Depends(get_db),
) -> list[ResponseRead]:
    """Responses to a survey; visible to admins and the survey creator."""
    survey = surveys.get(db, survey_id)
    if not user.may_access(survey.user_id):
        raise HTTPException(status_code=403, detail="Not authorized to access these responses")

    return [
        ResponseRead.model_validate(response)
        for response in survey_responses(db, survey_id)
    ]


@router.delete("/{survey_id}", status_code=204)
async def delete_survey(
    survey_id: int,
    request: Request,
    user: AuthenticatedUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> None:
    """Delete a survey with its questions, options and responses."""
    title = surveys.get(db, survey_id).title
    surveys.delete(db, survey_id)
    AuditTrail.log_action(
        db,
        user_id=user.id,
        action="delete",
        entity_type="survey",
        entity_id=survey_id,
        details={"title": title},
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    db.commit()

    logger.info(f"Deleted survey {survey_id}", extra={"user_id": user.id})


@router.get(
    "/{survey_id}/questions/{question_id}/options",
    dependencies=[Depends(authenticate)],
)
async def list_question_options(
    survey_id: int,
    question_id: int,
    db: Session = Depends(get_db),
) -> list[dict]:
    """Options of a question in display order."""
    question: Question = questions.get(db, question_id)
    if question.survey_id != survey_id:
        raise HTTPException(status_code=404, detail="Question not found in survey")

    return [
        {
            "id": option.id,
            "text": option.text,
            "is_default": option.is_default,
            "order": option.order,
        }
        for option in list_options_in_display_order(db, question_id)
    ]
