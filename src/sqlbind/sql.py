"""
Identifier checks shared by the statement builders.

Table and column names are written into SQL text as-is, so they are
restricted to plain (optionally schema-qualified) identifiers. Values never
pass through here; they always travel as bound parameters.
"""
import re

from sqlbind.exceptions import ValidationError

__all__ = ['split_table', 'validate_column', 'validate_identifier']

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)?$')


def validate_identifier(identifier: str, kind: str = 'identifier') -> str:
    """Return `identifier` unchanged or raise ValidationError.

    >>> validate_identifier('public.users', 'table')
    'public.users'
    >>> validate_identifier('users; DROP TABLE users', 'table')
    Traceback (most recent call last):
    ...
    sqlbind.exceptions.ValidationError: Invalid table name: 'users; DROP TABLE users'
    """
    if not isinstance(identifier, str) or not _IDENTIFIER.match(identifier):
        raise ValidationError(f'Invalid {kind} name: {identifier!r}')
    return identifier


def validate_column(column: str, allow_star: bool = False) -> str:
    """Validate a column name, optionally accepting the `*` wildcard.
    """
    if allow_star and column == '*':
        return column
    return validate_identifier(column, 'column')


def split_table(table: str) -> tuple[str | None, str]:
    """Split `schema.table` into its schema and table parts.

    >>> split_table('public.users')
    ('public', 'users')
    >>> split_table('users')
    (None, 'users')
    """
    schema, _, name = validate_identifier(table, 'table').rpartition('.')
    return schema or None, name
