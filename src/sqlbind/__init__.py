"""
Parameterized SQL statements over SQLAlchemy for PostgreSQL and SQLite.

Statements are described with table names, column lists and `Where`
conditions instead of SQL strings; every value is sent to the driver as a
bound parameter.

All operations can be called either as:
- Module functions: sqlbind.select(cn, table, columns, conditions)
- Connection methods: cn.select(table, columns, conditions)
"""
__version__ = '0.1.0'

from typing import Any

from sqlbind.connection import Connection, connect
from sqlbind.exceptions import ArityError, ConnectionFailure, DatabaseError
from sqlbind.exceptions import FetchError, MalformedConditionSequenceError
from sqlbind.exceptions import NoHandleError, NoMatchingRowsError, QueryError
from sqlbind.exceptions import SchemaError, TypeConversionError
from sqlbind.exceptions import UnsupportedOperatorError, ValidationError
from sqlbind.operators import LogicOp, Operator
from sqlbind.options import DatabaseOptions
from sqlbind.params import BindType, ParamBinding
from sqlbind.statement import Statement, build_delete, build_insert
from sqlbind.statement import build_select, build_update
from sqlbind.where import Where

AND = LogicOp.AND
OR = LogicOp.OR


def execute(cn: Connection, sql: str, bindings: Any = (), needs_fetch: bool = True) -> Any:
    """Execute a SQL statement with bound parameters.
    """
    return cn.execute(sql, bindings, needs_fetch=needs_fetch)


def select(cn: Connection, table: str, columns: Any = ('*',), conditions: Any = None) -> Any:
    """Select rows from a table.
    """
    return cn.select(table, columns, conditions)


def insert(cn: Connection, table: str, values: Any) -> int:
    """Insert one row and return its last-insert id.
    """
    return cn.insert(table, values)


def update(cn: Connection, table: str, values: Any, conditions: Any = None,
           minimum_rows: int = 1) -> int:
    """Update matching rows and return the affected row count.
    """
    return cn.update(table, values, conditions, minimum_rows=minimum_rows)


def delete(cn: Connection, table: str, conditions: Any = None,
           minimum_rows: int = 1) -> bool:
    """Delete matching rows.
    """
    return cn.delete(table, conditions, minimum_rows=minimum_rows)


__all__ = [
    'connect',
    'Connection',
    'DatabaseOptions',
    'execute',
    'select',
    'insert',
    'update',
    'delete',
    'Where',
    'Operator',
    'LogicOp',
    'AND',
    'OR',
    'ParamBinding',
    'BindType',
    'Statement',
    'build_select',
    'build_insert',
    'build_update',
    'build_delete',
    'DatabaseError',
    'ValidationError',
    'ArityError',
    'UnsupportedOperatorError',
    'MalformedConditionSequenceError',
    'SchemaError',
    'TypeConversionError',
    'ConnectionFailure',
    'NoHandleError',
    'QueryError',
    'FetchError',
    'NoMatchingRowsError',
]
