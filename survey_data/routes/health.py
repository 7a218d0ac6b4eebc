"""Health check endpoint for monitoring and deployment verification.

This module provides a health check endpoint that verifies the application
is running, can connect to the database, and has its data model loaded.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from survey_data.logging_config import get_logger
from survey_data.models.database import get_db
from survey_data.services.schema_registry import get_schema_registry

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> dict:
    """Health check endpoint.

    Returns:
        dict: Health status, database connectivity and entity count

    Raises:
        HTTPException: If database connection fails (503 Service Unavailable)
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=503,
            detail="Service unavailable - database connection failed"
        )

    logger.debug("Health check passed")
    return {
        "status": "healthy",
        "database": "connected",
        "entities": len(get_schema_registry()),
    }
