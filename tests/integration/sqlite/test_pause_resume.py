"""
Connection lifecycle: pause, resume and close.
"""
import threading
from unittest.mock import patch

import pytest
import sqlalchemy as sa
import sqlbind
from sqlbind import Where
from sqlbind.exceptions import ConnectionFailure, NoHandleError
from sqlbind.utils import connection_utils


def test_starts_open(sqlite_conn):
    assert sqlite_conn.paused is False
    assert 'open' in repr(sqlite_conn)


@pytest.mark.parametrize(('method', 'args'), [
    ('select', ('users', ['*'])),
    ('insert', ('users', {'name': 'Zed'})),
    ('update', ('users', {'age': 1}, [Where('id', '=', 1)])),
    ('delete', ('users', [Where('id', '=', 1)])),
    ('execute', ('SELECT 1',)),
    ('last_insert_rowid', ()),
    ('check_table_and_columns', ('users', ['name'])),
], ids=lambda v: v if isinstance(v, str) else None)
def test_operations_fail_while_paused(sqlite_conn, method, args):
    sqlite_conn.pause()
    with pytest.raises(NoHandleError):
        getattr(sqlite_conn, method)(*args)


def test_pause_is_idempotent(sqlite_conn):
    sqlite_conn.pause()
    state = (sqlite_conn.paused, sqlite_conn.sa_connection, sqlite_conn.calls)
    sqlite_conn.pause()
    assert (sqlite_conn.paused, sqlite_conn.sa_connection, sqlite_conn.calls) == state
    assert sqlite_conn.paused is True
    assert 'paused' in repr(sqlite_conn)


def test_resume_restores_connection(sqlite_conn):
    sqlite_conn.update('users', {'age': 99}, [Where('name', '=', 'Alice')])
    sqlite_conn.pause()
    sqlite_conn.resume()
    assert sqlite_conn.paused is False
    rows = sqlite_conn.select('users', ['age'], [Where('name', '=', 'Alice')])
    assert rows == [{'age': 99}]


def test_resume_when_open_is_noop(sqlite_conn):
    handle = sqlite_conn.sa_connection
    sqlite_conn.resume()
    assert sqlite_conn.sa_connection is handle


def test_resume_failure_leaves_connection_paused(sqlite_conn):
    sqlite_conn.pause()
    with patch.object(sa.Engine, 'connect',
                      side_effect=sa.exc.OperationalError('connect', {}, Exception('refused'))):
        with pytest.raises(ConnectionFailure, match='Database connection failed'):
            sqlite_conn.resume()
    assert sqlite_conn.paused is True
    sqlite_conn.resume()
    assert len(sqlite_conn.select('users', ['id'])) == 3


def test_open_failure_raises(tmp_path):
    missing = tmp_path / 'no_such_dir' / 'app.db'
    with pytest.raises(ConnectionFailure):
        sqlbind.connect({'drivername': 'sqlite', 'database': str(missing)})


def test_context_manager_closes(sqlite_path):
    with sqlbind.connect({'drivername': 'sqlite', 'database': str(sqlite_path)}) as cn:
        cn.execute('CREATE TABLE t (id INTEGER PRIMARY KEY)', needs_fetch=False)
        assert cn.paused is False
    assert cn.paused is True
    cn.resume()
    assert cn.check_table_and_columns('t', ['id']) is None
    cn.close()


def test_close_disposes_engine(sqlite_conn):
    engine = sqlite_conn.engine
    assert engine in connection_utils._engine_registry.values()
    sqlite_conn.close()
    assert sqlite_conn.paused is True
    assert engine not in connection_utils._engine_registry.values()
    sqlite_conn.resume()
    assert sqlite_conn.engine is not engine
    assert len(sqlite_conn.select('users', ['id'])) == 3


def test_close_keeps_sibling_connection_usable(sqlite_conn, sqlite_path):
    other = sqlbind.connect({'drivername': 'sqlite', 'database': str(sqlite_path)})
    assert other.engine is sqlite_conn.engine
    other.close()
    assert len(sqlite_conn.select('users', ['id'])) == 3


def test_last_insert_rowid_is_per_connection(sqlite_conn):
    assert sqlite_conn.last_insert_rowid() == 3
    sqlite_conn.pause()
    sqlite_conn.resume()
    assert sqlite_conn.last_insert_rowid() == 0


def test_operations_wait_for_lock(sqlite_conn):
    results = []
    with sqlite_conn._lock:
        worker = threading.Thread(
            target=lambda: results.append(sqlite_conn.select('users', ['id'])))
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()
        assert results == []
    worker.join()
    assert len(results[0]) == 3


def test_pause_waits_for_lock(sqlite_conn):
    with sqlite_conn._lock:
        worker = threading.Thread(target=sqlite_conn.pause)
        worker.start()
        worker.join(timeout=0.2)
        assert sqlite_conn.paused is False
    worker.join()
    assert sqlite_conn.paused is True
