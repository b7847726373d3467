"""
SQLAlchemy URL and engine helpers.

This module provides:
1. SQLAlchemy URL generation from DatabaseOptions
2. Engine creation through a thread-safe registry
3. Dialect name detection for engines and connections
"""
import atexit
import logging
import sqlite3
import threading
from collections.abc import Callable
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

__all__ = [
    'create_url_from_options',
    'dispose_all_engines',
    'dispose_engine',
    'get_dialect_name',
    'get_engine_for_options',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def create_url_from_options(options, url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Convert DatabaseOptions to SQLAlchemy URL.

    A hostname starting with `/` is treated as a unix socket directory and
    passed to psycopg through the `host` query parameter.

    Args:
        options: DatabaseOptions object with connection parameters
        url_creator: Function used to create URL objects (default: sqlalchemy.URL.create)

    Returns
        sqlalchemy.URL: SQLAlchemy URL object for database connection
    """
    if options.drivername == 'sqlite':
        return url_creator(
            drivername='sqlite',
            database=options.database
        )

    elif options.drivername == 'postgresql':
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        if options.appname:
            query['application_name'] = options.appname
        if options.uses_socket:
            query['host'] = options.hostname

        return url_creator(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=None if options.uses_socket else options.hostname,
            port=options.port or None,
            database=options.database,
            query=query
        )

    raise ValueError(f'Unsupported database type: {options.drivername}')


def get_engine_for_options(options, engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Engines never pool: each Connection owns exactly one driver connection.

    Args:
        options: DatabaseOptions object
        engine_factory: Function to create engines (defaults to sqlalchemy.create_engine)
        **kwargs: Additional arguments passed to engine factory

    Returns
        sqlalchemy.engine.Engine: SQLAlchemy engine
    """
    url = create_url_from_options(options)
    key = url.render_as_string(hide_password=False)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}

        if options.drivername == 'sqlite':
            # Connection serializes access with its own lock
            engine_kwargs['connect_args'] = {
                'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
                'check_same_thread': False,
            }

        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_engine(options) -> bool:
    """Dispose the engine registered for `options` and drop it from the registry.

    Returns False when no engine is registered for these options.
    """
    key = create_url_from_options(options).render_as_string(hide_password=False)
    with _engine_registry_lock:
        engine = _engine_registry.pop(key, None)
    if engine is None:
        return False
    engine.dispose()
    logger.debug(f'Disposed engine for {options.drivername}')
    return True


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in list(_engine_registry.values()):
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


def get_dialect_name(obj) -> str:
    """Get dialect name for a SQLAlchemy engine or connection.

    Raises
        AttributeError: If dialect cannot be determined
    """
    if hasattr(obj, 'dialect'):
        return str(obj.dialect.name).lower()

    if hasattr(obj, 'engine') and hasattr(obj.engine, 'dialect'):
        return str(obj.engine.dialect.name).lower()

    raise AttributeError(f'Cannot determine dialect for {type(obj)}')
