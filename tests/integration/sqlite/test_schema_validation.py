"""
Table and column existence checks before statements run.
"""
import pytest
import sqlbind
from sqlbind import Where
from sqlbind.exceptions import SchemaError


def test_unknown_table(sqlite_conn):
    with pytest.raises(SchemaError, match='Table does not exist. Table: customers'):
        sqlite_conn.select('customers', ['*'])


def test_unknown_select_column(sqlite_conn):
    with pytest.raises(SchemaError, match='Column does not exist. Column: password'):
        sqlite_conn.select('users', ['name', 'password'])


def test_unknown_where_column(sqlite_conn):
    with pytest.raises(SchemaError, match='Column: nickname'):
        sqlite_conn.select('users', ['*'], [Where('nickname', '=', 'Al')])


def test_unknown_insert_column(sqlite_conn):
    with pytest.raises(SchemaError):
        sqlite_conn.insert('users', {'name': 'Zed', 'height': 180})
    assert len(sqlite_conn.select('users', ['id'])) == 3


def test_unknown_update_column(sqlite_conn):
    with pytest.raises(SchemaError):
        sqlite_conn.update('users', {'height': 180}, [Where('id', '=', 1)])


def test_unknown_delete_table(sqlite_conn):
    with pytest.raises(SchemaError):
        sqlite_conn.delete('sessions', [Where('id', '=', 1)])


def test_column_case_insensitive(sqlite_conn):
    rows = sqlite_conn.select('users', ['NAME'], [Where('ID', '=', 1)])
    assert [list(row.values()) for row in rows] == [['Alice']]


def test_qualified_column(sqlite_conn):
    rows = sqlite_conn.select('users', ['users.name'], [Where('users.id', '=', 2)])
    assert [list(row.values()) for row in rows] == [['Bob']]


def test_explicit_check(sqlite_conn):
    assert sqlite_conn.check_table_and_columns('orders', ['total', 'paid']) is None
    assert sqlite_conn.check_table_and_columns('orders') is None
    with pytest.raises(SchemaError):
        sqlite_conn.check_table_and_columns('orders', ['discount'])


def test_validation_can_be_disabled(sqlite_path):
    cn = sqlbind.connect({
        'drivername': 'sqlite',
        'database': str(sqlite_path),
        'validate_schema': False,
    })
    with pytest.raises(sqlbind.QueryError):
        cn.select('customers', ['*'])
    cn.close()
