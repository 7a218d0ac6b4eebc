"""Create/read/update/delete operations shared by every entity.

Repositories flush but never commit: the caller owns the transaction and
decides when a group of writes becomes durable. A write rejected by the
database rolls the session back and surfaces as a ``ConstraintViolation``
subclass, so prior committed state is left untouched.
"""

from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from survey_data.errors import (
    AuditLogImmutableError,
    EntityNotFoundError,
    MissingRequiredField,
    translate_integrity_error,
)
from survey_data.logging_config import get_logger
from survey_data.models import (
    AnonymousSurveyResponse,
    Answer,
    AuditLog,
    Base,
    DatabaseConnection,
    Question,
    QuestionOption,
    Response,
    SelectedOption,
    Survey,
    User,
)
from survey_data.services.associations import (
    AssociationMap,
    get_association_map,
    load_related,
)
from survey_data.services.schema_registry import SchemaRegistry, get_schema_registry

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """CRUD operations for one mapped entity.

    Args:
        model: Mapped class handled by this repository
        registry: Schema registry used for required-field checks
        associations: Association map used to accept parent objects in
            place of foreign key values
    """

    def __init__(
        self,
        model: type[ModelT],
        registry: Optional[SchemaRegistry] = None,
        associations: Optional[AssociationMap] = None,
    ):
        self.model = model
        self._registry = registry
        self._associations = associations

    @property
    def entity(self) -> str:
        return self.model.__name__

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry or get_schema_registry()

    @property
    def associations(self) -> AssociationMap:
        return self._associations or get_association_map()

    def _missing_fields(self, attrs: Dict[str, Any]) -> List[str]:
        # A parent object passed under the relation name satisfies its key
        satisfied_by_relation = {
            relation.foreign_key
            for relation in self.associations.belongs_to(self.entity)
            if attrs.get(relation.name) is not None
        }
        return [
            field
            for field in self.registry.required_fields(self.entity)
            if attrs.get(field) is None and field not in satisfied_by_relation
        ]

    def _flush(self, db: Session, operation: str) -> None:
        try:
            db.flush()
        except IntegrityError as e:
            db.rollback()
            error = translate_integrity_error(e)
            logger.warning(
                f"{operation} {self.entity} rejected: {error}",
                extra={"table": error.table or self.registry.entity(self.entity).table},
            )
            raise error from e

    def create(self, db: Session, **attrs: Any) -> ModelT:
        """Insert a row and return it with its generated id and timestamps.

        Raises:
            MissingRequiredField: A required column was omitted
            UniquenessViolation: A unique index already holds the values
            ReferentialIntegrityViolation: A foreign key has no parent row
        """
        missing = self._missing_fields(attrs)
        if missing:
            schema = self.registry.entity(self.entity)
            raise MissingRequiredField(
                f"Missing required field: {', '.join(missing)}",
                table=schema.table,
                columns=missing,
            )

        instance = self.model(**attrs)
        db.add(instance)
        self._flush(db, "create")
        logger.debug(f"Created {self.entity} {instance.id}")
        return instance

    def get(self, db: Session, entity_id: int) -> ModelT:
        """Load a row by primary key.

        Raises:
            EntityNotFoundError: No row has this id
        """
        instance = db.get(self.model, entity_id)
        if instance is None:
            raise EntityNotFoundError(self.entity, entity_id)
        return instance

    def list(
        self,
        db: Session,
        *,
        order_by: Sequence[str] = ("id",),
        limit: Optional[int] = None,
        offset: int = 0,
        **filters: Any,
    ) -> List[ModelT]:
        """List rows matching equality filters on column attributes."""
        statement = select(self.model)
        for field, value in filters.items():
            statement = statement.where(getattr(self.model, field) == value)
        for field in order_by:
            if field.startswith("-"):
                statement = statement.order_by(getattr(self.model, field[1:]).desc())
            else:
                statement = statement.order_by(getattr(self.model, field))
        if offset:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        return list(db.execute(statement).scalars())

    def count(self, db: Session, **filters: Any) -> int:
        statement = select(func.count()).select_from(self.model)
        for field, value in filters.items():
            statement = statement.where(getattr(self.model, field) == value)
        return db.execute(statement).scalar_one()

    def update(self, db: Session, entity_id: int, **attrs: Any) -> ModelT:
        """Apply attribute changes to an existing row.

        Raises:
            EntityNotFoundError: No row has this id
            MissingRequiredField: A non-nullable column was set to None
        """
        instance = self.get(db, entity_id)
        schema = self.registry.entity(self.entity)

        for field, value in attrs.items():
            if field == "id" or not hasattr(self.model, field):
                raise TypeError(f"{self.entity} has no updatable attribute {field!r}")
            if value is None and field in schema.column_names and not schema.column(field).nullable:
                raise MissingRequiredField(
                    f"Missing required field: {field}",
                    table=schema.table,
                    columns=[field],
                )
            setattr(instance, field, value)

        self._flush(db, "update")
        return instance

    def delete(self, db: Session, entity_id: int) -> None:
        """Delete a row; children follow the foreign keys' delete policy.

        Raises:
            EntityNotFoundError: No row has this id
            ReferentialIntegrityViolation: A RESTRICT foreign key still
                references the row
        """
        instance = self.get(db, entity_id)
        db.delete(instance)
        self._flush(db, "delete")
        logger.debug(f"Deleted {self.entity} {entity_id}")


class AppendOnlyRepository(Repository[ModelT]):
    """Repository whose rows can be inserted and read but never changed."""

    def update(self, db: Session, entity_id: int, **attrs: Any) -> ModelT:
        raise AuditLogImmutableError(f"{self.entity} rows cannot be updated")

    def delete(self, db: Session, entity_id: int) -> None:
        raise AuditLogImmutableError(f"{self.entity} rows cannot be deleted")


users = Repository(User)
surveys = Repository(Survey)
questions = Repository(Question)
question_options = Repository(QuestionOption)
responses = Repository(Response)
answers = Repository(Answer)
selected_options = Repository(SelectedOption)
anonymous_responses = Repository(AnonymousSurveyResponse)
database_connections = Repository(DatabaseConnection)
audit_logs = AppendOnlyRepository(AuditLog)


def list_options_in_display_order(db: Session, question_id: int) -> List[QuestionOption]:
    """Return a question's options sorted by ``order``, ties by insertion."""
    return load_related(db, "Question", question_id, "options")
