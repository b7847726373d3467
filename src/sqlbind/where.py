"""
WHERE condition compiler.

A `Where` holds one (column, operator, operand) term. It compiles its SQL
fragment and bindings as soon as it is created, so an operand that does not
fit the operator fails at construction time.

Placeholder names are `<marker>_<column>` for single-operand operators and
`<marker>_<column>_<ordinal>` for IN and BETWEEN operands. Conditions use
markers starting with `w` while INSERT and UPDATE assignments use `v`, so a
column that is both assigned and filtered on never produces the same
placeholder twice.

>>> cond = Where('status', '=', 'active')
>>> cond.sql
'status = :w_status'
>>> cond.compile('w1').sql
'status = :w1_status'
>>> Where('id', Operator.IN, [1, 2, 3]).sql
'id IN (:w_id_0, :w_id_1, :w_id_2)'
>>> Where('age', 'BETWEEN', (18, 65)).sql
'age BETWEEN :w_age_0 AND :w_age_1'
>>> Where('deleted_at', 'IS NULL').sql
'deleted_at IS NULL'
"""
import logging
from typing import Any, NamedTuple

from sqlbind.exceptions import ArityError
from sqlbind.operators import Arity, Operator
from sqlbind.params import ParamBinding, placeholder_name
from sqlbind.sql import validate_column

__all__ = ['Compiled', 'Where', 'compile_condition']

logger = logging.getLogger(__name__)

WHERE_MARKER = 'w'

_MISSING = object()


class Compiled(NamedTuple):
    """SQL fragment and the bindings its placeholders refer to.
    """
    sql: str
    bindings: tuple[ParamBinding, ...]


def _is_array(value: Any) -> bool:
    return isinstance(value, list | tuple)


def _check_arity(operator: Operator, value: Any) -> None:
    """Raise ArityError when `value` does not fit `operator`.
    """
    arity = operator.arity
    if arity is Arity.NONE:
        if value is not _MISSING and value is not None:
            raise ArityError(f"The '{operator.value}' operator takes no value")
    elif arity is Arity.SINGLE:
        if value is _MISSING:
            raise ArityError(f"The '{operator.value}' operator requires a value")
        if _is_array(value):
            raise ArityError(
                f"The '{operator.value}' operator takes a single value, not an array")
    elif arity is Arity.MANY:
        if not _is_array(value):
            raise ArityError(f"The value for the '{operator.value}' operator must be an array")
        if not value:
            raise ArityError(
                f"The value for the '{operator.value}' operator must contain at least one value")
    elif arity is Arity.PAIR:
        if not _is_array(value):
            raise ArityError(f"The value for the '{operator.value}' operator must be an array")
        if len(value) != 2:
            raise ArityError(
                f"The value for the '{operator.value}' operator must be an array with 2 values")


def compile_condition(column: str, operator: Operator | str, value: Any = _MISSING,
                      marker: str = WHERE_MARKER) -> Compiled:
    """Compile one condition into a fragment and its bindings.

    Raises ArityError when the operand does not fit the operator and
    UnsupportedOperatorError for unknown operators.
    """
    column = validate_column(column)
    operator = Operator.coerce(operator)
    _check_arity(operator, value)

    arity = operator.arity
    if arity is Arity.NONE:
        return Compiled(f'{column} {operator.value}', ())

    if arity is Arity.SINGLE:
        binding = ParamBinding(placeholder_name(marker, column), value)
        return Compiled(f'{column} {operator.value} {binding.placeholder}', (binding,))

    bindings = tuple(ParamBinding(placeholder_name(marker, column, i), v)
                     for i, v in enumerate(value))
    placeholders = [b.placeholder for b in bindings]
    if arity is Arity.MANY:
        return Compiled(f"{column} {operator.value} ({', '.join(placeholders)})", bindings)
    return Compiled(f"{column} {operator.value} {' AND '.join(placeholders)}", bindings)


class Where:
    """One WHERE condition: column, operator and operand(s).

    The operand is a single value, a list or tuple for IN/NOT IN and
    BETWEEN/NOT BETWEEN, and omitted for IS NULL/IS NOT NULL.
    """

    __slots__ = ('column', 'operator', 'value', '_compiled')

    def __init__(self, column: str, operator: Operator | str = Operator.EQUALS,
                 value: Any = _MISSING) -> None:
        self._compiled = compile_condition(column, operator, value)
        self.column = column
        self.operator = Operator.coerce(operator)
        self.value = tuple(value) if _is_array(value) else value

    def __repr__(self) -> str:
        if self.value is _MISSING:
            return f'Where({self.column!r}, {self.operator.value!r})'
        return f'Where({self.column!r}, {self.operator.value!r}, {self.value!r})'

    @property
    def sql(self) -> str:
        return self._compiled.sql

    @property
    def bindings(self) -> tuple[ParamBinding, ...]:
        return self._compiled.bindings

    def compile(self, marker: str = WHERE_MARKER) -> Compiled:
        """Compile the condition with placeholders scoped by `marker`.

        Statement builders pass a marker carrying the condition's position so
        two conditions on the same column bind distinct placeholders.
        """
        if marker == WHERE_MARKER:
            return self._compiled
        return compile_condition(self.column, self.operator, self.value, marker)
