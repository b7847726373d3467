"""
SQL statement assembly from structured input.

Each builder is a pure function returning a `Statement` whose SQL text
refers to its bindings by name. The same input always yields the same SQL
and the same bindings in the same order.

Condition sequences alternate `Where` terms and logical operators:

    [Where('status', '=', 'open'), LogicOp.AND, Where('total', '>', 100)]

>>> stmt = build_update('orders', {'status': 'closed'},
...                     [Where('status', '=', 'open')])
>>> stmt.sql
'UPDATE orders SET status = :v_status WHERE status = :w0_status'
>>> [b.name for b in stmt.bindings]
['v_status', 'w0_status']
"""
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, NamedTuple

from sqlbind.exceptions import MalformedConditionSequenceError, ValidationError
from sqlbind.operators import LogicOp
from sqlbind.params import ParamBinding, placeholder_name
from sqlbind.sql import validate_column, validate_identifier
from sqlbind.where import WHERE_MARKER, Compiled, Where

__all__ = [
    'Statement',
    'build_count',
    'build_delete',
    'build_insert',
    'build_select',
    'build_update',
    'build_where',
    'condition_columns',
    'normalize_assignments',
]

logger = logging.getLogger(__name__)

VALUE_MARKER = 'v'

Assignments = Mapping[str, Any] | Iterable[tuple[str, Any]]
Conditions = Sequence[Where | LogicOp | str]


class Statement(NamedTuple):
    """SQL text and the bindings for its placeholders, in order.
    """
    sql: str
    bindings: tuple[ParamBinding, ...] = ()


def _logic_token(token: Any, position: int) -> str:
    if isinstance(token, LogicOp):
        return token.value
    if isinstance(token, str) and token in LogicOp.__members__:
        return token
    raise MalformedConditionSequenceError(
        f'Expected AND or OR at position {position}, got {token!r}')


def build_where(conditions: Conditions | None) -> Compiled:
    """Assemble a WHERE clause, including its leading space.

    Conditions sit at even positions and logical operators at odd
    positions. Condition `n` binds its placeholders under the marker
    `w<n>`. An empty sequence yields an empty clause.

    >>> build_where([Where('a', '=', 1), 'OR', Where('a', '=', 2)]).sql
    ' WHERE a = :w0_a OR a = :w1_a'
    >>> build_where([]).sql
    ''
    """
    if not conditions:
        return Compiled('', ())
    if isinstance(conditions, Where | str) or not isinstance(conditions, Sequence):
        raise MalformedConditionSequenceError(
            'Conditions must be a sequence of Where terms and logical operators')
    if len(conditions) % 2 == 0:
        raise MalformedConditionSequenceError(
            'Condition sequence must start and end with a Where term')

    parts: list[str] = []
    bindings: list[ParamBinding] = []
    for position, item in enumerate(conditions):
        if position % 2:
            parts.append(_logic_token(item, position))
            continue
        if not isinstance(item, Where):
            raise MalformedConditionSequenceError(
                f'Expected a Where term at position {position}, got {item!r}')
        compiled = item.compile(f'{WHERE_MARKER}{position // 2}')
        parts.append(compiled.sql)
        bindings.extend(compiled.bindings)

    return Compiled(' WHERE ' + ' '.join(parts), tuple(bindings))


def condition_columns(conditions: Conditions | None) -> list[str]:
    """Columns referenced by the Where terms of a condition sequence.
    """
    return [item.column for item in conditions or () if isinstance(item, Where)]


def normalize_assignments(values: Assignments) -> list[tuple[str, Any]]:
    """Turn a mapping or iterable of (column, value) pairs into a list.

    Raises ValidationError for empty input, invalid column names and
    columns given more than once.
    """
    pairs = list(values.items()) if isinstance(values, Mapping) else list(values)
    if not pairs:
        raise ValidationError('At least one column value is required')

    seen: set[str] = set()
    for pair in pairs:
        if not isinstance(pair, tuple | list) or len(pair) != 2:
            raise ValidationError(f'Expected a (column, value) pair, got {pair!r}')
        column = validate_column(pair[0])
        stem = placeholder_name(VALUE_MARKER, column)
        if stem in seen:
            raise ValidationError(f'Column given more than once: {column}')
        seen.add(stem)
    return [tuple(pair) for pair in pairs]


def _assignment_bindings(pairs: list[tuple[str, Any]]) -> list[ParamBinding]:
    return [ParamBinding(placeholder_name(VALUE_MARKER, column), value)
            for column, value in pairs]


def build_select(table: str, columns: Sequence[str] | None = None,
                 conditions: Conditions | None = None) -> Statement:
    """Build a SELECT statement.

    An empty or missing column list selects `*`.

    >>> build_select('users', ['*']).sql
    'SELECT * FROM users'
    >>> build_select('users', ['id', 'name'], [Where('id', '=', 7)]).sql
    'SELECT id, name FROM users WHERE id = :w0_id'
    """
    validate_identifier(table, 'table')
    if isinstance(columns, str):
        columns = [columns]
    columns = [validate_column(c, allow_star=True) for c in columns or ['*']]
    where = build_where(conditions)
    return Statement(f"SELECT {', '.join(columns)} FROM {table}{where.sql}",
                     where.bindings)


def build_count(table: str, conditions: Conditions | None = None) -> Statement:
    """Build a row count query, returned under the `row_count` column.

    >>> build_count('orders', [Where('status', '=', 'open')]).sql
    'SELECT COUNT(*) AS row_count FROM orders WHERE status = :w0_status'
    """
    validate_identifier(table, 'table')
    where = build_where(conditions)
    return Statement(f'SELECT COUNT(*) AS row_count FROM {table}{where.sql}',
                     where.bindings)


def build_insert(table: str, values: Assignments) -> Statement:
    """Build an INSERT statement with one placeholder per column.

    >>> build_insert('users', [('name', 'Alice'), ('age', 30)]).sql
    'INSERT INTO users (name, age) VALUES (:v_name, :v_age)'
    """
    validate_identifier(table, 'table')
    pairs = normalize_assignments(values)
    bindings = _assignment_bindings(pairs)
    columns = ', '.join(column for column, _ in pairs)
    placeholders = ', '.join(b.placeholder for b in bindings)
    return Statement(f'INSERT INTO {table} ({columns}) VALUES ({placeholders})',
                     tuple(bindings))


def build_update(table: str, values: Assignments,
                 conditions: Conditions | None = None) -> Statement:
    """Build an UPDATE statement.

    Assignment placeholders use the `v` marker and condition placeholders
    the `w<n>` markers, so the same column may appear in SET and WHERE.
    """
    validate_identifier(table, 'table')
    pairs = normalize_assignments(values)
    bindings = _assignment_bindings(pairs)
    assignments = ', '.join(f'{column} = {b.placeholder}'
                            for (column, _), b in zip(pairs, bindings))
    where = build_where(conditions)
    return Statement(f'UPDATE {table} SET {assignments}{where.sql}',
                     tuple(bindings) + where.bindings)


def build_delete(table: str, conditions: Conditions | None = None) -> Statement:
    """Build a DELETE statement.

    >>> build_delete('orders').sql
    'DELETE FROM orders'
    """
    validate_identifier(table, 'table')
    where = build_where(conditions)
    return Statement(f'DELETE FROM {table}{where.sql}', where.bindings)
