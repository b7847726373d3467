"""
Table and column existence checks.

Uses the SQLAlchemy Inspector so the same checks work on every supported
dialect (PRAGMA on SQLite, information_schema on PostgreSQL).
"""
import logging
from collections.abc import Iterable

import sqlalchemy as sa
from sqlalchemy import inspect
from sqlbind.exceptions import QueryError, SchemaError
from sqlbind.sql import split_table

__all__ = ['check_table_and_columns', 'get_table_columns', 'table_exists']

logger = logging.getLogger(__name__)


def table_exists(sa_connection: sa.Connection, table: str) -> bool:
    """Check whether a (optionally schema-qualified) table exists.
    """
    schema, name = split_table(table)
    try:
        return inspect(sa_connection).has_table(name, schema=schema)
    except sa.exc.SQLAlchemyError as err:
        raise QueryError(f'Failed to inspect table {table}: {err}') from err


def get_table_columns(sa_connection: sa.Connection, table: str) -> list[str]:
    """Get all column names for a table using SQLAlchemy Inspector.
    """
    schema, name = split_table(table)
    try:
        columns = inspect(sa_connection).get_columns(name, schema=schema)
    except sa.exc.NoSuchTableError as err:
        raise SchemaError(f'Table does not exist. Table: {table}') from err
    except sa.exc.SQLAlchemyError as err:
        raise QueryError(f'Failed to inspect table {table}: {err}') from err
    return [col['name'] for col in columns]


def check_table_and_columns(sa_connection: sa.Connection, table: str,
                            columns: Iterable[str] = ('*',)) -> None:
    """Raise SchemaError unless the table and every named column exist.

    The `*` wildcard is always accepted.
    """
    if not table_exists(sa_connection, table):
        raise SchemaError(f'Table does not exist. Table: {table}')

    wanted = [c for c in dict.fromkeys(columns) if c != '*']
    if not wanted:
        return

    existing = {c.lower() for c in get_table_columns(sa_connection, table)}
    for column in wanted:
        if column.rpartition('.')[2].lower() not in existing:
            raise SchemaError(f'Column does not exist. Column: {column}')
    logger.debug(f'Validated {len(wanted)} column(s) on {table}')
