"""Immutable schema registry composed from the ORM metadata.

The registry is built once, at first use, from the mapped classes on
``Base``. It describes every entity as plain frozen records (columns,
semantic types, nullability, defaults, unique constraints) so callers can
validate input and render documentation without reaching into SQLAlchemy
internals. Nothing mutates it after construction.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Tuple

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase

from survey_data.logging_config import get_logger

logger = get_logger(__name__)


class SemanticType(str, Enum):
    """Storage-independent column types."""
    IDENTITY = "identity"
    FOREIGN_KEY = "foreign_key"
    INTEGER = "integer"
    STRING = "string"
    TEXT = "text"
    BOOLEAN = "boolean"
    JSON = "json"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class ColumnSpec:
    """One column of an entity.

    Attributes:
        name: Column (and attribute) name
        semantic_type: Storage-independent type
        nullable: Whether NULL is accepted
        default: Scalar Python-side default, when one is declared
        has_default: Whether any client or server default exists
        primary_key: Whether this is the identity column
        foreign_key: ``"table.column"`` target for foreign keys
        on_delete: Foreign key delete policy (CASCADE, SET NULL, RESTRICT)
    """
    name: str
    semantic_type: SemanticType
    nullable: bool
    default: Any = None
    has_default: bool = False
    primary_key: bool = False
    foreign_key: Optional[str] = None
    on_delete: Optional[str] = None

    @property
    def required(self) -> bool:
        """True when an insert must supply a value for this column."""
        return not (self.nullable or self.has_default or self.primary_key)


@dataclass(frozen=True)
class EntitySchema:
    """Column layout and unique constraints of one entity."""
    name: str
    table: str
    columns: Tuple[ColumnSpec, ...]
    unique_together: Tuple[Tuple[str, ...], ...] = ()

    def column(self, name: str) -> ColumnSpec:
        for column in self.columns:
            if column.name == name:
                return column
        raise KeyError(f"{self.name} has no column {name!r}")

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    @property
    def required_fields(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns if column.required)


def _semantic_type(column: Column) -> SemanticType:
    if column.primary_key and isinstance(column.type, Integer):
        return SemanticType.IDENTITY
    if column.foreign_keys:
        return SemanticType.FOREIGN_KEY
    if isinstance(column.type, Boolean):
        return SemanticType.BOOLEAN
    if isinstance(column.type, Integer):
        return SemanticType.INTEGER
    if isinstance(column.type, DateTime):
        return SemanticType.TIMESTAMP
    if isinstance(column.type, JSON):
        return SemanticType.JSON
    # Text subclasses String, so test it first
    if isinstance(column.type, Text):
        return SemanticType.TEXT
    if isinstance(column.type, String):
        return SemanticType.STRING
    raise TypeError(f"Unsupported column type {column.type!r} on {column}")


def _column_spec(column: Column) -> ColumnSpec:
    default = None
    if column.default is not None and column.default.is_scalar:
        default = column.default.arg

    foreign_key = None
    on_delete = None
    if column.foreign_keys:
        fk = next(iter(column.foreign_keys))
        foreign_key = fk.target_fullname
        on_delete = fk.ondelete

    return ColumnSpec(
        name=column.key,
        semantic_type=_semantic_type(column),
        nullable=bool(column.nullable),
        default=default,
        has_default=column.default is not None or column.server_default is not None,
        primary_key=column.primary_key,
        foreign_key=foreign_key,
        on_delete=on_delete,
    )


def _entity_schema(name: str, table) -> EntitySchema:
    unique_together = []
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint):
            unique_together.append(tuple(col.key for col in constraint.columns))
    for column in table.columns:
        if column.unique and (column.key,) not in unique_together:
            unique_together.append((column.key,))

    return EntitySchema(
        name=name,
        table=table.name,
        columns=tuple(_column_spec(column) for column in table.columns),
        unique_together=tuple(sorted(unique_together)),
    )


class SchemaRegistry(Mapping[str, EntitySchema]):
    """Read-only mapping of entity name to ``EntitySchema``."""

    def __init__(self, entities: Mapping[str, EntitySchema]):
        self._entities = MappingProxyType(dict(entities))
        self._by_table = MappingProxyType(
            {schema.table: schema for schema in entities.values()}
        )

    def __getitem__(self, name: str) -> EntitySchema:
        return self._entities[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def entity(self, name: str) -> EntitySchema:
        try:
            return self._entities[name]
        except KeyError:
            raise KeyError(f"Unknown entity {name!r}") from None

    def for_table(self, table: str) -> EntitySchema:
        return self._by_table[table]

    def required_fields(self, name: str) -> Tuple[str, ...]:
        return self.entity(name).required_fields


def build_schema_registry(base: type[DeclarativeBase]) -> SchemaRegistry:
    """Compose the registry from every class mapped on ``base``.

    Args:
        base: Declarative base whose mappers describe the entities

    Returns:
        SchemaRegistry keyed by mapped class name
    """
    entities = {
        mapper.class_.__name__: _entity_schema(mapper.class_.__name__, mapper.local_table)
        for mapper in base.registry.mappers
    }
    logger.debug(f"Schema registry built with {len(entities)} entities")
    return SchemaRegistry(entities)


@lru_cache
def get_schema_registry() -> SchemaRegistry:
    """Get the process-wide registry for the survey data models."""
    # Importing the package registers every model on Base
    from survey_data.models import Base

    return build_schema_registry(Base)
