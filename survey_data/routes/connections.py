"""Database connection endpoints.

Every route requires a valid bearer token. Mutating calls append an audit
entry in the same transaction as the change they describe.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from survey_data.logging_config import get_logger
from survey_data.middleware.auth import AuthenticatedUser, authenticate
from survey_data.models.database import get_db
from survey_data.schemas.connection import (
    ConnectionCreate,
    ConnectionRead,
    ConnectionTestResult,
    ConnectionUpdate,
    DatabaseSchema,
)
from survey_data.services.audit_trail import AuditTrail
from survey_data.services.connection_manager import check_connection, get_database_schema
from survey_data.services.repository import database_connections

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/connections",
    dependencies=[Depends(authenticate)],
)

ENTITY_TYPE = "database_connection"

CurrentUser = Annotated[AuthenticatedUser, Depends(authenticate)]


def _audit(
    db: Session,
    request: Request,
    user: AuthenticatedUser,
    action: str,
    connection_id: int,
    details: dict | None = None,
) -> None:
    AuditTrail.log_action(
        db,
        user_id=user.id,
        action=action,
        entity_type=ENTITY_TYPE,
        entity_id=connection_id,
        details=details,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.post("", status_code=201, response_model=ConnectionRead)
async def create_database_connection(
    payload: ConnectionCreate,
    request: Request,
    user: CurrentUser,
    db: Session = Depends(get_db),
) -> ConnectionRead:
    """Register a new database connection."""
    connection = database_connections.create(
        db,
        **payload.model_dump(mode="json"),
        user_id=user.id,
    )
    _audit(db, request, user, "create", connection.id, {"name": connection.name})
    db.commit()

    logger.info(f"Created database connection {connection.id}", extra={"user_id": user.id})
    return ConnectionRead.model_validate(connection)


@router.get("", response_model=list[ConnectionRead])
async def get_all_database_connections(
    db: Session = Depends(get_db),
) -> list[ConnectionRead]:
    """List registered database connections."""
    return [
        ConnectionRead.model_validate(connection)
        for connection in database_connections.list(db, order_by=("name", "id"))
    ]


@router.get("/{connection_id}", response_model=ConnectionRead)
async def get_database_connection_by_id(
    connection_id: int,
    db: Session = Depends(get_db),
) -> ConnectionRead:
    """Fetch one database connection."""
    return ConnectionRead.model_validate(database_connections.get(db, connection_id))


@router.put("/{connection_id}", response_model=ConnectionRead)
async def update_database_connection(
    connection_id: int,
    payload: ConnectionUpdate,
    request: Request,
    user: CurrentUser,
    db: Session = Depends(get_db),
) -> ConnectionRead:
    """Update fields of a database connection; omitted fields are unchanged."""
    changes = payload.model_dump(mode="json", exclude_unset=True)
    connection = database_connections.update(db, connection_id, **changes)

    # Never write credentials into the trail
    changed_fields = sorted(field for field in changes if field != "password")
    if "password" in changes:
        changed_fields.append("password")
    _audit(db, request, user, "update", connection_id, {"fields": changed_fields})
    db.commit()

    return ConnectionRead.model_validate(connection)


@router.delete("/{connection_id}", status_code=204)
async def delete_database_connection(
    connection_id: int,
    request: Request,
    user: CurrentUser,
    db: Session = Depends(get_db),
) -> Response:
    """Delete a database connection."""
    name = database_connections.get(db, connection_id).name
    database_connections.delete(db, connection_id)
    _audit(db, request, user, "delete", connection_id, {"name": name})
    db.commit()

    logger.info(f"Deleted database connection {connection_id}", extra={"user_id": user.id})
    return Response(status_code=204)


@router.post("/{connection_id}/test", response_model=ConnectionTestResult)
async def test_database_connection(
    connection_id: int,
    request: Request,
    user: CurrentUser,
    db: Session = Depends(get_db),
) -> ConnectionTestResult:
    """Check that a registered database is reachable and record the result."""
    connection = database_connections.get(db, connection_id)
    result = check_connection(db, connection)
    _audit(db, request, user, "test", connection_id, {"status": result.status.value})
    db.commit()
    return result


@router.get("/{connection_id}/schema", response_model=DatabaseSchema)
async def get_database_schema_route(
    connection_id: int,
    db: Session = Depends(get_db),
) -> DatabaseSchema:
    """Introspect the tables of a registered database."""
    connection = database_connections.get(db, connection_id)
    return get_database_schema(connection)
