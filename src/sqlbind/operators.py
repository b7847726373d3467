"""
Comparison and logical operators accepted in WHERE conditions.
"""
from enum import Enum

from sqlbind.exceptions import UnsupportedOperatorError

__all__ = ['Arity', 'LogicOp', 'Operator']


class Arity(Enum):
    """How many operands an operator consumes.
    """
    NONE = 0
    SINGLE = 1
    MANY = 'many'
    PAIR = 2


class Operator(Enum):
    """Comparison operators, valued by their SQL token.
    """
    EQUALS = '='
    NOT_EQUALS = '!='
    GREATER_THAN = '>'
    GREATER_THAN_OR_EQUAL = '>='
    LESS_THAN = '<'
    LESS_THAN_OR_EQUAL = '<='
    LIKE = 'LIKE'
    NOT_LIKE = 'NOT LIKE'
    IS_NULL = 'IS NULL'
    IS_NOT_NULL = 'IS NOT NULL'
    IN = 'IN'
    NOT_IN = 'NOT IN'
    BETWEEN = 'BETWEEN'
    NOT_BETWEEN = 'NOT BETWEEN'

    @property
    def arity(self) -> Arity:
        return _ARITY[self]

    @classmethod
    def coerce(cls, token) -> 'Operator':
        """Resolve an operator from a member, its SQL token or its name.

        >>> Operator.coerce('>=')
        <Operator.GREATER_THAN_OR_EQUAL: '>='>
        >>> Operator.coerce('not in')
        <Operator.NOT_IN: 'NOT IN'>
        >>> Operator.coerce('LESS_THAN')
        <Operator.LESS_THAN: '<'>
        """
        if isinstance(token, cls):
            return token
        if isinstance(token, str):
            normalized = ' '.join(token.split()).upper()
            if normalized == '<>':
                return cls.NOT_EQUALS
            try:
                return cls(normalized)
            except ValueError:
                pass
            member = cls.__members__.get(normalized.replace(' ', '_'))
            if member is not None:
                return member
        raise UnsupportedOperatorError(f'The operator {token!r} is not supported')


_ARITY = {
    Operator.EQUALS: Arity.SINGLE,
    Operator.NOT_EQUALS: Arity.SINGLE,
    Operator.GREATER_THAN: Arity.SINGLE,
    Operator.GREATER_THAN_OR_EQUAL: Arity.SINGLE,
    Operator.LESS_THAN: Arity.SINGLE,
    Operator.LESS_THAN_OR_EQUAL: Arity.SINGLE,
    Operator.LIKE: Arity.SINGLE,
    Operator.NOT_LIKE: Arity.SINGLE,
    Operator.IS_NULL: Arity.NONE,
    Operator.IS_NOT_NULL: Arity.NONE,
    Operator.IN: Arity.MANY,
    Operator.NOT_IN: Arity.MANY,
    Operator.BETWEEN: Arity.PAIR,
    Operator.NOT_BETWEEN: Arity.PAIR,
}


class LogicOp(Enum):
    """Logical operators joining WHERE conditions.
    """
    AND = 'AND'
    OR = 'OR'
