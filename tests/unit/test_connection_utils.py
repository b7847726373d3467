"""
Unit tests for URL construction and the engine registry.
"""
from unittest.mock import MagicMock

from sqlbind.options import DatabaseOptions
from sqlbind.utils.connection_utils import create_url_from_options
from sqlbind.utils.connection_utils import dispose_all_engines, dispose_engine
from sqlbind.utils.connection_utils import get_dialect_name
from sqlbind.utils.connection_utils import get_engine_for_options


def pg_options(**kw):
    defaults = {
        'drivername': 'postgresql',
        'hostname': 'db.internal',
        'username': 'app',
        'password': 's3cret',
        'database': 'shop',
        'appname': 'tests',
    }
    defaults.update(kw)
    return DatabaseOptions(**defaults)


def test_sqlite_url():
    url = create_url_from_options(DatabaseOptions(drivername='sqlite', database='/tmp/app.db'))
    assert url.drivername == 'sqlite'
    assert url.database == '/tmp/app.db'


def test_postgresql_host_url():
    url = create_url_from_options(pg_options(port=5433, timeout=10))
    assert url.drivername == 'postgresql+psycopg'
    assert url.host == 'db.internal'
    assert url.port == 5433
    assert url.username == 'app'
    assert url.password == 's3cret'
    assert url.database == 'shop'
    assert url.query['connect_timeout'] == '10'
    assert url.query['application_name'] == 'tests'


def test_postgresql_socket_url():
    url = create_url_from_options(pg_options(hostname='/var/run/postgresql'))
    assert url.host is None
    assert url.query['host'] == '/var/run/postgresql'


def test_postgresql_default_port_omitted():
    assert create_url_from_options(pg_options()).port is None


class TestEngineRegistry:

    def test_engine_reused_for_same_options(self):
        factory = MagicMock(name='create_engine')
        options = DatabaseOptions(drivername='sqlite', database='reuse.db')
        first = get_engine_for_options(options, engine_factory=factory)
        second = get_engine_for_options(options, engine_factory=factory)
        assert first is second
        factory.assert_called_once()
        dispose_all_engines()

    def test_password_distinguishes_engines(self):
        factory = MagicMock(name='create_engine', side_effect=lambda *a, **k: MagicMock())
        first = get_engine_for_options(pg_options(password='a'), engine_factory=factory)
        second = get_engine_for_options(pg_options(password='b'), engine_factory=factory)
        assert first is not second
        dispose_all_engines()

    def test_dispose_all_engines(self):
        engine = MagicMock()
        options = DatabaseOptions(drivername='sqlite', database='dispose.db')
        get_engine_for_options(options, engine_factory=lambda *a, **k: engine)
        dispose_all_engines()
        engine.dispose.assert_called_once()

    def test_dispose_engine_unregisters(self):
        engine = MagicMock()
        factory = MagicMock(side_effect=[engine, MagicMock()])
        options = DatabaseOptions(drivername='sqlite', database='single.db')
        get_engine_for_options(options, engine_factory=factory)
        assert dispose_engine(options) is True
        engine.dispose.assert_called_once()
        assert get_engine_for_options(options, engine_factory=factory) is not engine
        dispose_all_engines()

    def test_dispose_engine_when_unregistered(self):
        assert dispose_engine(DatabaseOptions(drivername='sqlite', database='none.db')) is False


def test_get_dialect_name():
    engine = MagicMock()
    engine.dialect.name = 'SQLite'
    assert get_dialect_name(engine) == 'sqlite'
