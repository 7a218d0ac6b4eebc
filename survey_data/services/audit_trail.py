"""Audit trail recorder.

Appends one row per tracked action and answers the read queries the admin
screens need. Entries are immutable: the repository behind this service
refuses updates and deletes, and so do the ORM hooks on ``AuditLog``.
"""

import math
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from survey_data.logging_config import get_logger
from survey_data.models.audit_log import AuditLog
from survey_data.schemas.audit import AuditLogPage, AuditLogRead
from survey_data.services.repository import audit_logs

logger = get_logger(__name__)

# Newest first; ids break ties between entries written in the same instant
_NEWEST_FIRST = (AuditLog.created_at.desc(), AuditLog.id.desc())


class AuditTrail:
    """Service for recording and reading audit log entries."""

    @staticmethod
    def log_action(
        db: Session,
        *,
        user_id: int,
        action: str,
        entity_type: str,
        entity_id: int,
        details: Optional[Any] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """Append one audit entry.

        The entry joins the caller's transaction: it becomes durable when the
        audited change is committed, and is discarded with it on rollback.

        Args:
            db: Database session
            user_id: Acting user
            action: Verb describing the action (e.g. "create", "delete")
            entity_type: Kind of entity acted on
            entity_id: Identifier of the entity acted on
            details: Optional structured context
            ip_address: Optional client IP
            user_agent: Optional client user agent

        Returns:
            AuditLog: The persisted entry

        Raises:
            MissingRequiredField: action, entity_type or entity_id is missing
            ReferentialIntegrityViolation: user_id matches no user
        """
        entry = audit_logs.create(
            db,
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info(
            f"Audit: user {user_id} {action} {entity_type} {entity_id}",
            extra={"user_id": user_id, "entity_type": entity_type, "entity_id": entity_id},
        )
        return entry

    @staticmethod
    def entity_logs(db: Session, entity_type: str, entity_id: int) -> List[AuditLog]:
        """Entries for one entity, newest first, with the acting user loaded."""
        statement = (
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .options(selectinload(AuditLog.user))
            .order_by(*_NEWEST_FIRST)
        )
        return list(db.execute(statement).scalars())

    @staticmethod
    def user_logs(db: Session, user_id: int) -> List[AuditLog]:
        """Entries written by one user, newest first."""
        statement = (
            select(AuditLog)
            .where(AuditLog.user_id == user_id)
            .order_by(*_NEWEST_FIRST)
        )
        return list(db.execute(statement).scalars())

    @staticmethod
    def list_logs(db: Session, page: int = 1, limit: int = 20) -> AuditLogPage:
        """One page of all entries, newest first.

        Args:
            db: Database session
            page: 1-based page number
            limit: Entries per page

        Raises:
            ValueError: page or limit is below 1
        """
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")

        total = audit_logs.count(db)
        statement = (
            select(AuditLog)
            .options(selectinload(AuditLog.user))
            .order_by(*_NEWEST_FIRST)
            .limit(limit)
            .offset((page - 1) * limit)
        )
        rows = db.execute(statement).scalars()

        return AuditLogPage(
            logs=[AuditLogRead.model_validate(row) for row in rows],
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
        )
