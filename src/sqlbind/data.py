"""
Decoding of cell values read back from the database.
"""
import html
import re
from typing import Any

__all__ = ['decode_row', 'decode_value']

_INTEGER = re.compile(r'^-?(0|[1-9]\d*)$')
_DECIMAL = re.compile(r'^-?(0|[1-9]\d*)\.\d+$')


def decode_value(value: Any) -> Any:
    """Convert numeric text to numbers and unescape HTML entities.

    Text with leading zeros stays text so codes such as '007' survive.

    >>> decode_value('42'), decode_value('-0.5'), decode_value('007')
    (42, -0.5, '007')
    >>> decode_value('Tom &amp; Jerry')
    'Tom & Jerry'
    >>> decode_value(None) is None
    True
    """
    if not isinstance(value, str):
        return value
    if _INTEGER.match(value):
        return int(value)
    if _DECIMAL.match(value):
        return float(value)
    return html.unescape(value)


def decode_row(row: dict[str, Any]) -> dict[str, Any]:
    return {column: decode_value(value) for column, value in row.items()}
