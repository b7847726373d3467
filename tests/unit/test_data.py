"""
Unit tests for decoding selected cell values.
"""
import pytest
from sqlbind.data import decode_row, decode_value


@pytest.mark.parametrize(('value', 'expected'), [
    ('42', 42),
    ('-7', -7),
    ('0', 0),
    ('3.25', 3.25),
    ('-0.5', -0.5),
    ('007', '007'),
    ('1e5', '1e5'),
    ('12abc', '12abc'),
    ('', ''),
    ('Tom &amp; Jerry', 'Tom & Jerry'),
    ('&lt;b&gt;', '<b>'),
    ('plain', 'plain'),
    (5, 5),
    (1.5, 1.5),
    (None, None),
    (True, True),
], ids=lambda v: repr(v))
def test_decode_value(value, expected):
    result = decode_value(value)
    assert result == expected
    assert type(result) is type(expected)


def test_decode_row_keeps_column_order():
    row = decode_row({'b': '2', 'a': 'x &amp; y'})
    assert list(row) == ['b', 'a']
    assert row == {'b': 2, 'a': 'x & y'}
