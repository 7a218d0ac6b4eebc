"""Integration tests for the audit trail recorder.

These tests verify that entries are appended with their context, read back
newest first, paginated, and can never be changed once written.
"""

import pytest

from survey_data.errors import AuditLogImmutableError, MissingRequiredField
from survey_data.models import AuditLog, User
from survey_data.services.associations import load_related
from survey_data.services.audit_trail import AuditTrail
from survey_data.services.repository import audit_logs


def record(db_session, user, action="update", entity_type="survey", entity_id=1, **extra):
    return AuditTrail.log_action(
        db_session,
        user_id=user.id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        **extra,
    )


class TestLogAction:
    """Tests for AuditTrail.log_action."""

    def test_appends_entry_with_context(self, db_session, user):
        entry = record(
            db_session,
            user,
            action="create",
            details={"title": "Team Pulse"},
            ip_address="192.168.1.10",
            user_agent="Mozilla/5.0",
        )
        db_session.commit()

        assert entry.id is not None
        assert entry.created_at is not None
        assert entry.details == {"title": "Team Pulse"}
        assert entry.ip_address == "192.168.1.10"
        assert entry.user_agent == "Mozilla/5.0"

    def test_missing_action_propagates(self, db_session, user):
        with pytest.raises(MissingRequiredField):
            AuditTrail.log_action(
                db_session, user_id=user.id, action=None, entity_type="survey", entity_id=1
            )

    def test_user_alias_resolves_actor(self, db_session, user):
        entry = record(db_session, user)
        db_session.commit()

        actor = load_related(db_session, "AuditLog", entry.id, "user")

        assert isinstance(actor, User)
        assert actor.id == user.id
        assert entry.user.username == "alice"


class TestImmutability:
    """Entries cannot be updated or deleted."""

    def test_orm_update_rejected(self, db_session, user):
        entry = record(db_session, user)
        db_session.commit()

        entry.action = "tampered"
        with pytest.raises(AuditLogImmutableError):
            db_session.flush()

    def test_orm_delete_rejected(self, db_session, user):
        entry = record(db_session, user)
        db_session.commit()

        db_session.delete(entry)
        with pytest.raises(AuditLogImmutableError):
            db_session.flush()

    def test_repository_exposes_no_update(self, db_session, user):
        entry = record(db_session, user)
        db_session.commit()

        with pytest.raises(AuditLogImmutableError):
            audit_logs.update(db_session, entry.id, action="tampered")

    def test_repository_exposes_no_delete(self, db_session, user):
        entry = record(db_session, user)
        db_session.commit()

        with pytest.raises(AuditLogImmutableError):
            audit_logs.delete(db_session, entry.id)

        assert db_session.get(AuditLog, entry.id) is not None


class TestQueries:
    """Tests for the read side of the audit trail."""

    def test_entity_logs_newest_first(self, db_session, user, admin):
        first = record(db_session, user, action="create", entity_id=5)
        second = record(db_session, admin, action="update", entity_id=5)
        record(db_session, user, action="create", entity_id=6)
        record(db_session, user, action="create", entity_type="question", entity_id=5)
        db_session.commit()

        logs = AuditTrail.entity_logs(db_session, "survey", 5)

        assert [log.id for log in logs] == [second.id, first.id]
        assert logs[0].user.username == "root"

    def test_user_logs(self, db_session, user, admin):
        mine = [record(db_session, user, entity_id=n) for n in range(3)]
        record(db_session, admin)
        db_session.commit()

        logs = AuditTrail.user_logs(db_session, user.id)

        assert [log.id for log in logs] == [entry.id for entry in reversed(mine)]

    def test_list_logs_paginates(self, db_session, user):
        entries = [record(db_session, user, entity_id=n) for n in range(5)]
        db_session.commit()

        page_one = AuditTrail.list_logs(db_session, page=1, limit=2)
        page_three = AuditTrail.list_logs(db_session, page=3, limit=2)

        assert page_one.total == 5
        assert page_one.total_pages == 3
        assert [log.id for log in page_one.logs] == [entries[4].id, entries[3].id]
        assert [log.id for log in page_three.logs] == [entries[0].id]
        assert page_one.logs[0].user.email == "alice@example.com"

    def test_list_logs_empty(self, db_session):
        page = AuditTrail.list_logs(db_session)

        assert page.total == 0
        assert page.total_pages == 0
        assert page.logs == []

    def test_list_logs_rejects_bad_page(self, db_session):
        with pytest.raises(ValueError):
            AuditTrail.list_logs(db_session, page=0)
