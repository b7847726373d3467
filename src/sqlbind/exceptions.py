"""
Exception classes for statement construction and connection handling.
"""
import sqlite3

import psycopg
import sqlalchemy as sa


class DatabaseError(Exception):
    """Base class for all sqlbind errors.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class ArityError(ValidationError):
    """Wrong number of operands for a comparison operator.
    """


class UnsupportedOperatorError(ValidationError):
    """Operator token is not one of the supported comparison operators.
    """


class MalformedConditionSequenceError(ValidationError):
    """WHERE conditions and logical operators do not alternate correctly.
    """


class SchemaError(ValidationError):
    """Table or column referenced by a statement does not exist.
    """


class TypeConversionError(ValidationError):
    """Value is outside the set of bindable value kinds.
    """


class ConnectionFailure(DatabaseError):
    """Error establishing or re-establishing the database connection.
    """


class NoHandleError(DatabaseError):
    """Operation attempted while the connection is paused.
    """


class QueryError(DatabaseError):
    """Statement failed to prepare, bind or execute.
    """


class FetchError(DatabaseError):
    """Result rows could not be retrieved.
    """


class NoMatchingRowsError(DatabaseError):
    """Update or delete pre-check found fewer rows than required.
    """


DbConnectionError = (
    sa.exc.OperationalError,
    sa.exc.InterfaceError,
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    )

ProgrammingError = (
    sa.exc.ArgumentError,
    sa.exc.StatementError,
    psycopg.ProgrammingError,
    psycopg.DatabaseError,
    sqlite3.ProgrammingError,
    sqlite3.DatabaseError,
    )
