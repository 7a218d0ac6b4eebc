"""Unit tests for the association map and the relation query builder."""

import pytest

from survey_data.services.associations import (
    RelationKind,
    get_association_map,
    related_select,
)


@pytest.fixture
def associations():
    return get_association_map()


class TestRelations:

    def test_audit_log_user_alias(self, associations):
        relation = associations.relation("AuditLog", "user")

        assert relation.kind is RelationKind.BELONGS_TO
        assert relation.target == "User"
        assert relation.foreign_key == "user_id"
        assert relation.required is True

    def test_response_user_is_optional(self, associations):
        assert associations.relation("Response", "user").required is False

    def test_option_selections_alias(self, associations):
        relation = associations.relation("QuestionOption", "selections")

        assert relation.kind is RelationKind.HAS_MANY
        assert relation.target == "SelectedOption"
        assert relation.foreign_key == "option_id"

    def test_selected_option_resolves_option(self, associations):
        relation = associations.relation("SelectedOption", "option")

        assert relation.target == "QuestionOption"
        assert relation.foreign_key == "option_id"

    def test_question_options_ordered_for_display(self, associations):
        relation = associations.relation("Question", "options")

        assert relation.order_by == ("order", "id")

    @pytest.mark.parametrize("entity,names", [
        ("Question", {"options", "answers", "selected_options"}),
        ("Response", {"answers", "selected_options"}),
    ])
    def test_has_many(self, associations, entity, names):
        assert names <= {r.name for r in associations.has_many(entity)}

    def test_unknown_relation(self, associations):
        with pytest.raises(KeyError, match="no relation"):
            associations.relation("AuditLog", "survey")

    def test_map_is_read_only(self, associations):
        with pytest.raises(TypeError):
            associations["AuditLog"] = ()


class TestRelatedSelect:

    def test_has_many_orders_by_declared_columns(self, associations):
        relation = associations.relation("Question", "options")

        sql = str(related_select(associations, relation, 7))

        assert "question_options.question_id = " in sql
        assert 'ORDER BY question_options."order", question_options.id' in sql

    def test_belongs_to_uses_owner_key(self, associations):
        relation = associations.relation("AuditLog", "user")

        sql = str(related_select(associations, relation, 3))

        assert "FROM users" in sql
        assert "SELECT audit_logs.user_id" in sql
