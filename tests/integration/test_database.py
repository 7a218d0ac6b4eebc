"""Integration tests for the relational data model.

These tests verify the constraints the database enforces:
- Required columns (MissingRequiredField)
- Unique (survey_id, user_id) completions (UniquenessViolation)
- Foreign keys on insert and delete (ReferentialIntegrityViolation)
- Column defaults and automatically maintained timestamps
- Delete cascades and the RESTRICT policy protecting the audit trail
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from survey_data.errors import (
    MissingRequiredField,
    ReferentialIntegrityViolation,
    UniquenessViolation,
    translate_integrity_error,
)
from survey_data.models import (
    AnonymousSurveyResponse,
    Answer,
    AuditLog,
    Question,
    QuestionOption,
    Response,
    SelectedOption,
    Survey,
    User,
)
from survey_data.services.repository import (
    anonymous_responses,
    answers,
    audit_logs,
    list_options_in_display_order,
    question_options,
    surveys,
    users,
)


def flush_translated(db_session):
    """Flush, converting driver errors the way the repositories do."""
    try:
        db_session.flush()
    except IntegrityError as e:
        db_session.rollback()
        raise translate_integrity_error(e) from e


def count(db_session, model) -> int:
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


class TestAnonymousSurveyResponseIntegrity:
    """(survey_id, user_id) is unique on anonymous_survey_responses."""

    def test_duplicate_pair_rejected(self, db_session, survey, user):
        anonymous_responses.create(db_session, survey_id=survey.id, user_id=user.id)
        db_session.commit()

        with pytest.raises(UniquenessViolation) as exc_info:
            anonymous_responses.create(db_session, survey_id=survey.id, user_id=user.id)

        assert exc_info.value.table == "anonymous_survey_responses"
        assert set(exc_info.value.columns) == {"survey_id", "user_id"}
        assert count(db_session, AnonymousSurveyResponse) == 1

    def test_different_user_same_survey_allowed(self, db_session, survey, user, admin):
        anonymous_responses.create(db_session, survey_id=survey.id, user_id=user.id)
        anonymous_responses.create(db_session, survey_id=survey.id, user_id=admin.id)
        db_session.commit()

        assert count(db_session, AnonymousSurveyResponse) == 2

    def test_same_user_different_survey_allowed(self, db_session, survey, user):
        other = surveys.create(db_session, title="Second Survey")
        anonymous_responses.create(db_session, survey_id=survey.id, user_id=user.id)
        anonymous_responses.create(db_session, survey_id=other.id, user_id=user.id)
        db_session.commit()

        assert count(db_session, AnonymousSurveyResponse) == 2

    def test_submitted_at_defaults_to_now(self, db_session, survey, user):
        completion = anonymous_responses.create(db_session, survey_id=survey.id, user_id=user.id)
        db_session.commit()

        assert completion.submitted_at is not None
        assert completion.created_at is not None

    def test_unknown_survey_rejected(self, db_session, user):
        with pytest.raises(ReferentialIntegrityViolation):
            anonymous_responses.create(db_session, survey_id=9999, user_id=user.id)


class TestAnswerIntegrity:
    """Answer.value is required and both parents must exist."""

    @pytest.fixture
    def response(self, db_session, survey):
        response = Response(survey_id=survey.id)
        db_session.add(response)
        db_session.commit()
        return response

    def test_missing_value_rejected_by_database(self, db_session, response, text_question):
        db_session.add(Answer(response_id=response.id, question_id=text_question.id))

        with pytest.raises(MissingRequiredField) as exc_info:
            flush_translated(db_session)

        assert exc_info.value.table == "answers"
        assert exc_info.value.columns == ("value",)

    def test_missing_value_rejected_by_repository(self, db_session, response, text_question):
        with pytest.raises(MissingRequiredField) as exc_info:
            answers.create(db_session, response_id=response.id, question_id=text_question.id)

        assert exc_info.value.columns == ("value",)
        assert count(db_session, Answer) == 0

    def test_parent_object_satisfies_foreign_key(self, db_session, response, text_question):
        answer = answers.create(
            db_session, response=response, question=text_question, value="All good"
        )
        db_session.commit()

        assert answer.response_id == response.id
        assert answer.question_id == text_question.id

    def test_unknown_response_rejected(self, db_session, text_question):
        with pytest.raises(ReferentialIntegrityViolation):
            answers.create(db_session, response_id=4242, question_id=text_question.id, value="x")


class TestAuditLogIntegrity:
    """action, entity_type and entity_id are mandatory; context is optional."""

    @pytest.mark.parametrize("omitted", ["action", "entity_type", "entity_id"])
    def test_missing_identifying_field_rejected_by_database(self, db_session, user, omitted):
        fields = {"action": "update", "entity_type": "survey", "entity_id": 7}
        del fields[omitted]
        db_session.add(AuditLog(user_id=user.id, **fields))

        with pytest.raises(MissingRequiredField) as exc_info:
            flush_translated(db_session)

        assert exc_info.value.columns == (omitted,)

    @pytest.mark.parametrize("omitted", ["action", "entity_type", "entity_id"])
    def test_missing_identifying_field_rejected_by_repository(self, db_session, user, omitted):
        fields = {"action": "update", "entity_type": "survey", "entity_id": 7}
        del fields[omitted]

        with pytest.raises(MissingRequiredField):
            audit_logs.create(db_session, user_id=user.id, **fields)

    def test_optional_context_stored_as_absent(self, db_session, user):
        entry = audit_logs.create(
            db_session, user_id=user.id, action="delete", entity_type="survey", entity_id=3
        )
        db_session.commit()
        db_session.expire_all()

        stored = db_session.get(AuditLog, entry.id)
        assert stored.details is None
        assert stored.ip_address is None
        assert stored.user_agent is None

    def test_structured_details_round_trip(self, db_session, user):
        details = {"fields": ["title", "description"], "previous": {"title": "Old"}}
        entry = audit_logs.create(
            db_session,
            user_id=user.id,
            action="update",
            entity_type="survey",
            entity_id=3,
            details=details,
            ip_address="10.0.0.8",
            user_agent="pytest",
        )
        db_session.commit()
        db_session.expire_all()

        stored = db_session.get(AuditLog, entry.id)
        assert stored.details == details
        assert stored.ip_address == "10.0.0.8"

    def test_unknown_user_rejected(self, db_session):
        with pytest.raises(ReferentialIntegrityViolation):
            audit_logs.create(
                db_session, user_id=777, action="create", entity_type="survey", entity_id=1
            )


class TestQuestionOptionDefaults:
    """is_default and order have defaults; options list in display order."""

    def test_defaults_applied(self, db_session, text_question):
        option = question_options.create(db_session, question_id=text_question.id, text="Maybe")
        db_session.commit()
        db_session.expire_all()

        stored = db_session.get(QuestionOption, option.id)
        assert stored.is_default is False
        assert stored.order == 0

    def test_display_order_sorts_by_order(self, db_session, text_question):
        for order, text in [(2, "third"), (0, "first"), (1, "second")]:
            question_options.create(
                db_session, question_id=text_question.id, text=text, order=order
            )
        db_session.commit()

        options = list_options_in_display_order(db_session, text_question.id)

        assert [option.order for option in options] == [0, 1, 2]
        assert [option.text for option in options] == ["first", "second", "third"]

    def test_equal_order_falls_back_to_insertion(self, db_session, text_question):
        created = [
            question_options.create(db_session, question_id=text_question.id, text=text, order=1)
            for text in ["b", "a", "c"]
        ]
        db_session.commit()

        options = list_options_in_display_order(db_session, text_question.id)

        assert [option.id for option in options] == [option.id for option in created]

    def test_relationship_uses_display_order(self, db_session, text_question):
        for order in (2, 0, 1):
            question_options.create(
                db_session, question_id=text_question.id, text=str(order), order=order
            )
        db_session.commit()
        db_session.expire_all()

        question = db_session.get(Question, text_question.id)
        assert [option.order for option in question.options] == [0, 1, 2]


class TestTimestamps:
    """created_at and updated_at are maintained automatically."""

    def test_timestamps_set_on_insert(self, db_session, user):
        assert user.created_at is not None
        assert user.updated_at is not None

    def test_updated_at_advances_on_update(self, db_session, survey):
        before = survey.updated_at

        surveys.update(db_session, survey.id, title="Renamed")
        db_session.commit()

        assert survey.title == "Renamed"
        assert survey.updated_at > before


class TestDeletePolicy:
    """Cascades follow ownership; the audit trail blocks user deletion."""

    def test_user_with_audit_history_cannot_be_deleted(self, db_session, user, audit_entry):
        with pytest.raises(ReferentialIntegrityViolation):
            users.delete(db_session, user.id)

        db_session.expire_all()
        assert db_session.get(User, user.id) is not None
        assert db_session.get(AuditLog, audit_entry.id) is not None

    def test_user_without_audit_history_is_deleted(self, db_session, survey, user):
        response = Response(survey_id=survey.id, user_id=user.id)
        db_session.add(response)
        anonymous_responses.create(db_session, survey_id=survey.id, user_id=user.id)
        db_session.commit()

        users.delete(db_session, user.id)
        db_session.commit()
        db_session.expire_all()

        assert db_session.get(User, user.id) is None
        # Completions go with the user; responses and surveys are kept
        assert count(db_session, AnonymousSurveyResponse) == 0
        assert db_session.get(Response, response.id).user_id is None
        assert db_session.get(Survey, survey.id).user_id is None

    def test_survey_delete_cascades(self, db_session, survey, user, choice_question):
        response = Response(survey_id=survey.id)
        db_session.add(response)
        db_session.flush()
        option = choice_question.options[0]
        db_session.add(Answer(response_id=response.id, question_id=choice_question.id, value=str(option.id)))
        db_session.add(SelectedOption(
            response_id=response.id, question_id=choice_question.id, option_id=option.id
        ))
        anonymous_responses.create(db_session, survey_id=survey.id, user_id=user.id)
        db_session.commit()

        surveys.delete(db_session, survey.id)
        db_session.commit()

        for model in (Survey, Question, QuestionOption, Response, Answer,
                      SelectedOption, AnonymousSurveyResponse):
            assert count(db_session, model) == 0, model.__name__
        # The creator is untouched
        assert db_session.get(User, user.id) is not None

    def test_option_delete_removes_selections(self, db_session, survey, choice_question):
        response = Response(survey_id=survey.id)
        db_session.add(response)
        db_session.flush()
        option = choice_question.options[1]
        db_session.add(SelectedOption(
            response_id=response.id, question_id=choice_question.id, option_id=option.id
        ))
        db_session.commit()

        question_options.delete(db_session, option.id)
        db_session.commit()

        assert count(db_session, SelectedOption) == 0
        assert count(db_session, QuestionOption) == 2
        assert db_session.get(Response, response.id) is not None
