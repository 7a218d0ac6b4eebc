"""Testing and introspection of registered external databases.

Each operation opens a short-lived engine (no pooling) against the
registered connection, does its work, and disposes of it.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from survey_data.config import get_settings
from survey_data.errors import ConnectionTestError
from survey_data.logging_config import get_logger
from survey_data.models.database_connection import (
    ConnectionStatus,
    DatabaseConnection,
    DatabaseType,
)
from survey_data.schemas.connection import (
    ColumnInfo,
    ConnectionTestResult,
    DatabaseSchema,
    ForeignKeyInfo,
    TableInfo,
)

logger = get_logger(__name__)

DRIVERS = {
    DatabaseType.POSTGRES: "postgresql+psycopg2",
    DatabaseType.MYSQL: "mysql+pymysql",
    DatabaseType.MSSQL: "mssql+pyodbc",
    DatabaseType.SQLITE: "sqlite",
}

# Name of the connect-timeout argument understood by each driver
_TIMEOUT_ARGS = {
    DatabaseType.POSTGRES: "connect_timeout",
    DatabaseType.MYSQL: "connect_timeout",
    DatabaseType.MSSQL: "timeout",
    DatabaseType.SQLITE: "timeout",
}


def build_url(connection: DatabaseConnection) -> URL:
    """Build the SQLAlchemy URL for a registered connection."""
    db_type = connection.database_type

    if db_type is DatabaseType.SQLITE:
        return URL.create(DRIVERS[db_type], database=connection.database)

    query: Dict[str, str] = {
        key: str(value) for key, value in (connection.options or {}).items()
    }
    if connection.ssl:
        if db_type is DatabaseType.POSTGRES:
            query.setdefault("sslmode", "require")
        elif db_type is DatabaseType.MSSQL:
            query.setdefault("Encrypt", "yes")
        elif db_type is DatabaseType.MYSQL:
            query.setdefault("ssl_verify_cert", "true")

    return URL.create(
        DRIVERS[db_type],
        username=connection.username,
        password=connection.password,
        host=connection.host,
        port=connection.port,
        database=connection.database,
        query=query,
    )


def _connect_args(connection: DatabaseConnection, timeout: int) -> Dict[str, Any]:
    return {_TIMEOUT_ARGS[connection.database_type]: timeout}


@contextmanager
def open_engine(
    connection: DatabaseConnection,
    timeout: Optional[int] = None,
) -> Generator[Engine, None, None]:
    """Yield a throwaway engine for ``connection`` and dispose of it afterwards.

    Raises:
        ConnectionTestError: A sqlite connection names a file that does not exist
    """
    if timeout is None:
        timeout = get_settings().connection_test_timeout_seconds

    # sqlite would silently create a missing file
    if (
        connection.database_type is DatabaseType.SQLITE
        and connection.database != ":memory:"
        and not Path(connection.database).exists()
    ):
        raise ConnectionTestError(f"SQLite database file not found: {connection.database}")

    engine = create_engine(
        build_url(connection),
        poolclass=NullPool,
        connect_args=_connect_args(connection, timeout),
    )
    try:
        yield engine
    finally:
        engine.dispose()


def check_connection(db: Session, connection: DatabaseConnection) -> ConnectionTestResult:
    """Try to reach a registered database and record the outcome.

    The connection's ``status`` and ``last_tested_at`` are updated either
    way; the caller commits. Failures are reported in the result rather
    than raised.
    """
    tested_at = datetime.now(timezone.utc)
    error = None

    try:
        with open_engine(connection) as engine:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
    # ImportError: the driver for this database type is not installed
    except (SQLAlchemyError, ImportError, ConnectionTestError) as e:
        error = str(e).splitlines()[0]
        logger.warning(
            f"Connection test failed for {connection.name!r}: {error}",
            extra={"entity_type": "database_connection", "entity_id": connection.id},
        )

    connection.mark_tested(error is None, tested_at)
    db.flush()

    if error is None:
        logger.info(
            f"Connection test passed for {connection.name!r}",
            extra={"entity_type": "database_connection", "entity_id": connection.id},
        )

    return ConnectionTestResult(
        status=ConnectionStatus(connection.status),
        last_tested_at=tested_at,
        error=error,
    )


def get_database_schema(connection: DatabaseConnection) -> DatabaseSchema:
    """Introspect tables, columns, primary and foreign keys of a registered database.

    Raises:
        ConnectionTestError: The database cannot be reached or read
    """
    try:
        with open_engine(connection) as engine:
            inspector = inspect(engine)
            tables = []
            for table_name in sorted(inspector.get_table_names()):
                columns = [
                    ColumnInfo(
                        name=column["name"],
                        type=str(column["type"]),
                        nullable=bool(column.get("nullable", True)),
                        default=(
                            str(column["default"])
                            if column.get("default") is not None
                            else None
                        ),
                    )
                    for column in inspector.get_columns(table_name)
                ]
                primary_key = inspector.get_pk_constraint(table_name).get(
                    "constrained_columns"
                ) or []
                foreign_keys = [
                    ForeignKeyInfo(
                        columns=fk["constrained_columns"],
                        referred_table=fk["referred_table"],
                        referred_columns=fk["referred_columns"],
                    )
                    for fk in inspector.get_foreign_keys(table_name)
                ]
                tables.append(
                    TableInfo(
                        name=table_name,
                        columns=columns,
                        primary_key=primary_key,
                        foreign_keys=foreign_keys,
                    )
                )
    except (SQLAlchemyError, ImportError) as e:
        logger.error(f"Schema introspection failed for {connection.name!r}: {e}")
        raise ConnectionTestError(
            f"Could not read schema of {connection.name!r}: {str(e).splitlines()[0]}"
        ) from e

    logger.info(f"Introspected {len(tables)} tables from {connection.name!r}")
    return DatabaseSchema(connection_id=connection.id, tables=tables)
