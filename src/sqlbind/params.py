"""
Bound parameter values.

A `ParamBinding` pairs a placeholder name with the value the driver will
substitute for it and the declared bind type chosen from the value's kind.

>>> ParamBinding('v_age', 30)
ParamBinding(name='v_age', value=30, type=<BindType.INT: 'int'>)
>>> ParamBinding('w0_active', True).type
<BindType.BOOL: 'bool'>
>>> ParamBinding('w0_price', 9.5).type
<BindType.STRING: 'string'>
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import sqlalchemy as sa
from sqlbind.exceptions import TypeConversionError, ValidationError

__all__ = [
    'BindType',
    'ParamBinding',
    'bind_type_for',
    'placeholder_name',
    'to_bindparam',
]

logger = logging.getLogger(__name__)

_PLACEHOLDER_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class BindType(Enum):
    """Declared type handed to the driver with each bound value.
    """
    BOOL = 'bool'
    INT = 'int'
    STRING = 'string'


# bool is tested first since it is a subclass of int
_VALUE_KINDS: tuple[tuple[type | None, BindType], ...] = (
    (bool, BindType.BOOL),
    (int, BindType.INT),
    (float, BindType.STRING),
    (str, BindType.STRING),
    (type(None), BindType.STRING),
)

_SQLALCHEMY_TYPES = {
    BindType.BOOL: sa.Boolean,
    BindType.INT: sa.Integer,
}


def bind_type_for(value: Any) -> BindType:
    """Resolve the declared bind type for a value.

    Raises TypeConversionError for values outside bool, int, float, str
    and None.

    >>> bind_type_for(False)
    <BindType.BOOL: 'bool'>
    >>> bind_type_for(None)
    <BindType.STRING: 'string'>
    """
    for kind, bind_type in _VALUE_KINDS:
        if isinstance(value, kind):
            return bind_type
    raise TypeConversionError(
        f'Cannot bind value of type {type(value).__name__}; '
        'expected bool, int, float, str or None')


def placeholder_name(marker: str, column: str, ordinal: int | None = None) -> str:
    """Build a placeholder name scoped by `marker`.

    Non-word characters in the column (such as the dot of `orders.id`) are
    folded to underscores.

    >>> placeholder_name('v', 'status')
    'v_status'
    >>> placeholder_name('w2', 'orders.id', 1)
    'w2_orders_id_1'
    """
    stem = re.sub(r'\W', '_', column)
    name = f'{marker}_{stem}'
    if ordinal is not None:
        name = f'{name}_{ordinal}'
    return name


@dataclass(frozen=True)
class ParamBinding:
    """One placeholder name, its value and the declared bind type.

    The type is resolved from the value when the binding is created.
    """
    name: str
    value: Any
    type: BindType = field(init=False)

    def __post_init__(self):
        if not _PLACEHOLDER_NAME.match(self.name):
            raise ValidationError(f'Invalid placeholder name: {self.name!r}')
        object.__setattr__(self, 'type', bind_type_for(self.value))

    @property
    def placeholder(self) -> str:
        """Placeholder token as it appears in SQL text.
        """
        return f':{self.name}'

    @classmethod
    def from_mapping(cls, values) -> list['ParamBinding']:
        """Create bindings from a name to value mapping, keeping its order.
        """
        return [cls(name, value) for name, value in values.items()]


def to_bindparam(binding: ParamBinding) -> sa.BindParameter:
    """Convert a binding into a SQLAlchemy bind parameter.

    STRING bindings leave type inference to SQLAlchemy so floats and NULLs
    keep their native representation.
    """
    type_ = _SQLALCHEMY_TYPES.get(binding.type)
    if type_ is None:
        return sa.bindparam(binding.name, binding.value)
    return sa.bindparam(binding.name, binding.value, type_=type_())
