"""FastAPI application entry point for the survey data service.

This module initializes the FastAPI application, sets up logging,
registers routers, and maps data-layer errors onto HTTP responses.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from survey_data.config import get_settings
from survey_data.errors import (
    AuditLogImmutableError,
    ConnectionTestError,
    ConstraintViolation,
    EntityNotFoundError,
    MissingRequiredField,
    SubmissionError,
    SurveyImportError,
)
from survey_data.logging_config import setup_logging, get_logger
from survey_data.routes import audit_logs, connections, health, responses, surveys
from survey_data.services.associations import get_association_map
from survey_data.services.schema_registry import get_schema_registry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup configures logging and composes the schema registry and
    association map once, before the first request.
    """
    settings = get_settings()
    setup_logging()

    registry = get_schema_registry()
    associations = get_association_map()

    logger.info(
        f"Survey data service starting - "
        f"Environment: {settings.environment}, "
        f"Log Level: {settings.log_level}, "
        f"Database: {settings.database_url.split('@')[-1] if '@' in settings.database_url else 'configured'}, "
        f"Entities: {len(registry)}, "
        f"Relations: {sum(len(relations) for relations in associations.values())}"
    )

    yield

    logger.info("Survey data service shutting down")


app = FastAPI(
    title="Survey Data Service",
    description="Survey, response and audit data model with database connection management",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict:
    """Root endpoint with basic API information."""
    settings = get_settings()
    return {
        "service": "Survey Data Service",
        "version": "1.0.0",
        "environment": settings.environment,
        "status": "operational"
    }


app.include_router(health.router, tags=["Health"])
app.include_router(connections.router, tags=["Database Connections"])
app.include_router(audit_logs.router, tags=["Audit Logs"])
app.include_router(surveys.router, tags=["Surveys"])
app.include_router(responses.router, tags=["Responses"])


def _error_body(exc: Exception, error: str) -> dict:
    body = {"error": error, "message": str(exc)}
    if isinstance(exc, ConstraintViolation):
        body["table"] = exc.table
        body["columns"] = list(exc.columns)
    return body


@app.exception_handler(EntityNotFoundError)
async def not_found_handler(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=_error_body(exc, "not_found"))


@app.exception_handler(ConstraintViolation)
async def constraint_violation_handler(request: Request, exc: ConstraintViolation) -> JSONResponse:
    """Constraint failures are client errors: 422 for missing fields, 409 otherwise."""
    status_code = 422 if isinstance(exc, MissingRequiredField) else 409
    error = type(exc).__name__
    return JSONResponse(status_code=status_code, content=_error_body(exc, error))


@app.exception_handler(AuditLogImmutableError)
async def immutable_handler(request: Request, exc: AuditLogImmutableError) -> JSONResponse:
    return JSONResponse(status_code=409, content=_error_body(exc, "immutable"))


@app.exception_handler(SubmissionError)
@app.exception_handler(SurveyImportError)
async def bad_request_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content=_error_body(exc, "bad_request"))


@app.exception_handler(ConnectionTestError)
async def connection_error_handler(request: Request, exc: ConnectionTestError) -> JSONResponse:
    return JSONResponse(status_code=502, content=_error_body(exc, "connection_failed"))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled exceptions.

    Logs all unhandled exceptions and returns a generic error response
    to prevent leaking sensitive information.
    """
    logger.error(
        f"Unhandled exception for {request.method} {request.url}: {exc}",
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later."
        }
    )
