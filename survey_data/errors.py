"""Error taxonomy for the survey data layer.

Write-time constraint failures reported by the database are translated into
``ConstraintViolation`` subclasses so callers can tell a missing field from a
duplicate submission or a dangling foreign key without inspecting driver
messages.
"""

from typing import Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError

# PostgreSQL SQLSTATE codes for integrity constraint classes
PG_NOT_NULL_VIOLATION = "23502"
PG_FOREIGN_KEY_VIOLATION = "23503"
PG_UNIQUE_VIOLATION = "23505"


class SurveyDataError(Exception):
    """Base class for all survey data errors."""
    pass


class ConstraintViolation(SurveyDataError):
    """A write was rejected by a database constraint.

    Attributes:
        table: Table the constraint belongs to, when known
        columns: Columns involved in the violation, when known
    """

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        columns: Sequence[str] = (),
    ):
        super().__init__(message)
        self.table = table
        self.columns: Tuple[str, ...] = tuple(columns)


class MissingRequiredField(ConstraintViolation):
    """A non-nullable column was omitted or set to None."""
    pass


class UniquenessViolation(ConstraintViolation):
    """A row duplicates the value(s) of a unique index."""
    pass


class ReferentialIntegrityViolation(ConstraintViolation):
    """A foreign key references a missing parent, or a parent is still referenced."""
    pass


class EntityNotFoundError(SurveyDataError):
    """Raised when a lookup by primary key finds no row."""

    def __init__(self, entity: str, entity_id: int):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class AuditLogImmutableError(SurveyDataError):
    """Raised when an existing audit log row is updated or deleted."""
    pass


class SubmissionError(SurveyDataError):
    """Raised when a survey submission is rejected before it is stored."""
    pass


class SurveyImportError(SurveyDataError):
    """Raised when a survey definition cannot be read or validated."""
    pass


class ConnectionTestError(SurveyDataError):
    """Raised when a registered database connection cannot be reached."""
    pass


def _split_qualified(names: str) -> Tuple[Optional[str], Tuple[str, ...]]:
    """Split ``"table.col_a, table.col_b"`` into ``("table", ("col_a", "col_b"))``."""
    table = None
    columns = []
    for qualified in names.split(","):
        qualified = qualified.strip()
        if not qualified:
            continue
        if "." in qualified:
            table, column = qualified.rsplit(".", 1)
        else:
            column = qualified
        columns.append(column)
    return table, tuple(columns)


def _from_sqlite(message: str) -> Optional[ConstraintViolation]:
    if message.startswith("NOT NULL constraint failed:"):
        table, columns = _split_qualified(message.split(":", 1)[1])
        return MissingRequiredField(
            f"Missing required field: {', '.join(columns)}",
            table=table,
            columns=columns,
        )
    if message.startswith("UNIQUE constraint failed:"):
        table, columns = _split_qualified(message.split(":", 1)[1])
        return UniquenessViolation(
            f"Duplicate value for unique field(s): {', '.join(columns)}",
            table=table,
            columns=columns,
        )
    if message.startswith("FOREIGN KEY constraint failed"):
        return ReferentialIntegrityViolation("Foreign key constraint failed")
    return None


def _from_postgres(orig: Exception, sqlstate: str) -> Optional[ConstraintViolation]:
    diag = getattr(orig, "diag", None)
    table = getattr(diag, "table_name", None)
    column = getattr(diag, "column_name", None)
    constraint = getattr(diag, "constraint_name", None)
    columns = (column,) if column else ()

    if sqlstate == PG_NOT_NULL_VIOLATION:
        return MissingRequiredField(
            f"Missing required field: {column or 'unknown'}",
            table=table,
            columns=columns,
        )
    if sqlstate == PG_UNIQUE_VIOLATION:
        return UniquenessViolation(
            f"Duplicate value violates unique constraint {constraint or 'unknown'}",
            table=table,
            columns=columns,
        )
    if sqlstate == PG_FOREIGN_KEY_VIOLATION:
        return ReferentialIntegrityViolation(
            f"Foreign key constraint {constraint or 'unknown'} failed",
            table=table,
            columns=columns,
        )
    return None


def translate_integrity_error(exc: IntegrityError) -> ConstraintViolation:
    """Map a SQLAlchemy ``IntegrityError`` onto the constraint taxonomy.

    Args:
        exc: Error raised by the session on flush or commit

    Returns:
        The most specific ``ConstraintViolation`` that describes the failure;
        the base class when the driver reports an unrecognised constraint.
    """
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)

    translated = None
    if sqlstate:
        translated = _from_postgres(orig, sqlstate)
    else:
        translated = _from_sqlite(str(orig))

    if translated is None:
        translated = ConstraintViolation(str(orig))
    return translated
