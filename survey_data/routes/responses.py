"""Endpoints for reading stored responses.

A response is visible to admins, to the creator of its survey and to the
user who submitted it.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from survey_data.middleware.auth import AuthenticatedUser, authenticate
from survey_data.models.database import get_db
from survey_data.schemas.response import ResponseRead
from survey_data.services.associations import load_related
from survey_data.services.repository import responses
from survey_data.services.submissions import user_responses

router = APIRouter(
    prefix="/api/responses",
    dependencies=[Depends(authenticate)],
)


@router.get("/me", response_model=list[ResponseRead])
async def list_my_responses(
    user: AuthenticatedUser = Depends(authenticate),
    db: Session = Depends(get_db),
) -> list[ResponseRead]:
    """Responses submitted by the current user, newest first."""
    return [
        ResponseRead.model_validate(response)
        for response in user_responses(db, user.id, user.email)
    ]


@router.get("/{response_id}", response_model=ResponseRead)
async def get_response(
    response_id: int,
    user: AuthenticatedUser = Depends(authenticate),
    db: Session = Depends(get_db),
) -> ResponseRead:
    """Fetch one response with its answers."""
    response = responses.get(db, response_id)
    survey = load_related(db, "Response", response_id, "survey")

    if not (user.may_access(survey.user_id) or user.may_access(response.user_id)):
        raise HTTPException(status_code=403, detail="Not authorized to access this response")

    return ResponseRead.model_validate(response)
