"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for creating new database connections
2. The `Connection` class that owns one SQLAlchemy connection and exposes
   structured select/insert/update/delete plus raw statement execution

Every value reaches the driver as a bound parameter. A Connection is either
open or paused; `pause()` releases the driver connection and `resume()`
reopens it from the stored options. Operations on a paused connection raise
NoHandleError.
"""
import logging
import threading
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import fields
from typing import Any, Self

import sqlalchemy as sa
from sqlbind.data import decode_row
from sqlbind.exceptions import ConnectionFailure, DbConnectionError, FetchError
from sqlbind.exceptions import NoHandleError, NoMatchingRowsError
from sqlbind.exceptions import ProgrammingError, QueryError
from sqlbind.options import DatabaseOptions
from sqlbind.params import ParamBinding, to_bindparam
from sqlbind.schema import check_table_and_columns
from sqlbind.statement import Assignments, Conditions, Statement, build_count
from sqlbind.statement import build_delete, build_insert, build_select
from sqlbind.statement import build_update, condition_columns
from sqlbind.statement import normalize_assignments
from sqlbind.utils.connection_utils import dispose_engine, get_dialect_name
from sqlbind.utils.connection_utils import get_engine_for_options

from libb import load_options

__all__ = ['Connection', 'connect']

logger = logging.getLogger(__name__)

_LAST_INSERT_ID_SQL = {
    'sqlite': 'SELECT last_insert_rowid() AS last_id',
    'postgresql': 'SELECT lastval() AS last_id',
}


class Connection:
    """Owns a single SQLAlchemy connection and runs bound statements on it.

    Each public operation holds a re-entrant lock, so `pause()` and
    `resume()` never interleave with a statement in flight on another
    thread. The connection runs in AUTOCOMMIT mode; every successful
    statement is durable immediately.

    Update and delete first count the rows matching their conditions and
    raise NoMatchingRowsError below `minimum_rows`. The count and the
    mutating statement are separate round trips, so a concurrent writer can
    change the matching set in between.
    """

    def __init__(self, options: DatabaseOptions) -> None:
        """Open the connection described by `options`.

        Raises ConnectionFailure if the driver cannot connect.
        """
        self.options = options
        self.engine: sa.Engine | None = None
        self.sa_connection: sa.Connection | None = None
        self.calls = 0
        self.time = 0
        self._lock = threading.RLock()
        self._open()

    def __repr__(self) -> str:
        state = 'paused' if self.paused else 'open'
        return f'<Connection {self.options.drivername}:{self.options.database} ({state})>'

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    @property
    def paused(self) -> bool:
        return self.sa_connection is None

    @property
    def dialect(self) -> str:
        return get_dialect_name(self.engine)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    #
    # Lifecycle
    #

    def _open(self) -> None:
        try:
            self.engine = get_engine_for_options(self.options)
            sa_connection = self.engine.connect()
        except (sa.exc.SQLAlchemyError, *DbConnectionError) as err:
            raise ConnectionFailure(f'Database connection failed: {err}') from err
        self.sa_connection = sa_connection.execution_options(isolation_level='AUTOCOMMIT')
        logger.debug(f'Opened {self.options.drivername} connection to {self.options.database}')

    def _handle(self) -> sa.Connection:
        if self.sa_connection is None:
            raise NoHandleError('Connection is paused; call resume() first')
        return self.sa_connection

    def pause(self) -> None:
        """Release the driver connection. Pausing twice is a no-op.
        """
        with self._lock:
            if self.sa_connection is None:
                logger.debug('Connection already paused')
                return
            sa_connection, self.sa_connection = self.sa_connection, None
            sa_connection.close()
            logger.debug(f'Connection paused: {self.calls} queries in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per query)')

    def resume(self) -> None:
        """Reopen the driver connection from the original options.

        Resuming an open connection is a no-op. Raises ConnectionFailure if
        the driver cannot reconnect; the connection then stays paused.
        """
        with self._lock:
            if self.sa_connection is not None:
                return
            self._open()
            logger.debug('Connection resumed')

    def close(self) -> None:
        """Release the driver connection and dispose its engine.

        A closed connection can be resumed; `resume()` builds a fresh engine.
        Other connections opened from the same options keep working.
        """
        with self._lock:
            self.pause()
            dispose_engine(self.options)

    #
    # Statement execution
    #

    def _execute(self, statement: Statement) -> sa.CursorResult:
        """Prepare, bind and execute a statement.
        """
        sa_connection = self._handle()
        for binding in statement.bindings:
            if not isinstance(binding, ParamBinding):
                raise QueryError(f'ParamBinding expected, got {type(binding).__name__}')

        try:
            clause = sa.text(statement.sql)
        except sa.exc.SQLAlchemyError as err:
            raise QueryError(f'Failed to prepare statement: {err}') from err

        try:
            clause = clause.bindparams(*[to_bindparam(b) for b in statement.bindings])
        except sa.exc.ArgumentError as err:
            raise QueryError(f'Failed to bind value: {err}') from err

        start = time.time()
        try:
            result = sa_connection.execute(clause)
        except ProgrammingError as err:
            raise QueryError(f'Failed to execute statement: {err}') from err
        finally:
            self.addcall(time.time() - start)

        logger.debug(f'Executed statement with {len(statement.bindings)} parameters: {statement.sql[:60]}...')
        return result

    def _fetch(self, result: sa.CursorResult) -> tuple[list[dict[str, Any]], list[str]]:
        """Read every row of a result as a column to value dictionary.
        """
        try:
            columns = list(result.keys())
            rows = [dict(row) for row in result.mappings().all()]
        except sa.exc.SQLAlchemyError as err:
            raise FetchError(f'Failed to fetch result: {err}') from err
        return rows, columns

    def execute(self, sql: str, bindings: Sequence[ParamBinding] | Mapping[str, Any] = (),
                needs_fetch: bool = True) -> list[dict[str, Any]] | bool:
        """Execute any statement with the given bindings.

        `bindings` is a sequence of ParamBinding or a mapping of placeholder
        name to value. Returns every row as a dictionary when `needs_fetch`
        is true, otherwise True once the statement has run. A statement that
        produces no result set returns an empty list when fetched.

        Raises QueryError if the statement fails to prepare, bind or execute
        and FetchError if its rows cannot be read.
        """
        if isinstance(bindings, Mapping):
            bindings = ParamBinding.from_mapping(bindings)
        statement = Statement(sql, tuple(bindings))
        with self._lock:
            result = self._execute(statement)
            if not needs_fetch:
                return True
            if not result.returns_rows:
                return []
            rows, _ = self._fetch(result)
            return rows

    def _query(self, statement: Statement) -> tuple[list[dict[str, Any]], list[str]]:
        return self._fetch(self._execute(statement))

    #
    # Structured operations
    #

    def check_table_and_columns(self, table: str, columns: Iterable[str] = ('*',)) -> None:
        """Raise SchemaError unless the table and columns exist.
        """
        with self._lock:
            check_table_and_columns(self._handle(), table, columns)

    def _validate(self, table: str, columns: Iterable[str]) -> None:
        if self.options.validate_schema:
            check_table_and_columns(self._handle(), table, columns)

    def _require_rows(self, table: str, conditions: Conditions | None,
                      minimum_rows: int) -> None:
        """Count rows matching `conditions` and raise below `minimum_rows`.
        """
        if minimum_rows <= 0:
            return
        rows, _ = self._query(build_count(table, conditions))
        found = rows[0]['row_count'] if rows else 0
        if found < minimum_rows:
            raise NoMatchingRowsError(
                f'No rows found. Table: {table} (matched {found}, required {minimum_rows})')

    def _load(self, table: str, rows: list[dict[str, Any]], columns: list[str]) -> Any:
        if self.options.decode_values:
            rows = [decode_row(row) for row in rows]
        return self.options.data_loader(rows, columns, table_name=table)

    def select(self, table: str, columns: Sequence[str] | str = ('*',),
               conditions: Conditions | None = None) -> Any:
        """Select rows from a table.

        Returns the rows shaped by `options.data_loader`, by default a list
        of attribute dictionaries in result order.

        >>> cn.select('users', ['id', 'name'], [Where('age', '>=', 18)])  # doctest: +SKIP
        [{'id': 1, 'name': 'Alice'}]
        """
        columns = [columns] if isinstance(columns, str) else list(columns or ['*'])
        with self._lock:
            self._handle()
            statement = build_select(table, columns, conditions)
            self._validate(table, [*columns, *condition_columns(conditions)])
            rows, names = self._query(statement)
            logger.debug(f'Select on {table} returned {len(rows)} rows')
            return self._load(table, rows, names)

    def insert(self, table: str, values: Assignments) -> int:
        """Insert one row and return its last-insert id.

        `values` maps columns to values, either as a mapping or as
        (column, value) pairs. On PostgreSQL the id is the session's
        `lastval()`; an insert that draws no sequence value returns 0.
        """
        pairs = normalize_assignments(values)
        with self._lock:
            self._handle()
            statement = build_insert(table, pairs)
            self._validate(table, [column for column, _ in pairs])
            self._execute(statement)
            return self._inserted_id(table)

    def update(self, table: str, values: Assignments, conditions: Conditions | None = None,
               minimum_rows: int = 1) -> int:
        """Update matching rows and return the affected row count.

        Raises NoMatchingRowsError when fewer than `minimum_rows` rows match
        before the update runs. A `minimum_rows` of 0 skips that check.
        """
        pairs = normalize_assignments(values)
        with self._lock:
            self._handle()
            statement = build_update(table, pairs, conditions)
            self._validate(table, [*(column for column, _ in pairs),
                                   *condition_columns(conditions)])
            self._require_rows(table, conditions, minimum_rows)
            result = self._execute(statement)
            logger.debug(f'Updated {result.rowcount} rows in {table}')
            return result.rowcount

    def delete(self, table: str, conditions: Conditions | None = None,
               minimum_rows: int = 1) -> bool:
        """Delete matching rows.

        Raises NoMatchingRowsError when fewer than `minimum_rows` rows match.
        Pass `minimum_rows=0` to delete even when nothing matches.
        """
        with self._lock:
            self._handle()
            statement = build_delete(table, conditions)
            self._validate(table, condition_columns(conditions))
            self._require_rows(table, conditions, minimum_rows)
            return self.execute(statement.sql, statement.bindings, needs_fetch=False)

    def _last_insert_rowid(self) -> int:
        rows, _ = self._query(Statement(_LAST_INSERT_ID_SQL[self.dialect]))
        return int(rows[0]['last_id'])

    def _inserted_id(self, table: str) -> int:
        try:
            return self._last_insert_rowid()
        except QueryError as err:
            # the row is committed; lastval() is undefined until a sequence is used
            if self.dialect != 'postgresql':
                raise
            logger.warning(f'No sequence value after insert into {table}: {err}')
            return 0

    def last_insert_rowid(self) -> int:
        """Return the id generated by the most recent insert on this connection.
        """
        with self._lock:
            self._handle()
            return self._last_insert_rowid()


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> Connection:
    """Connect to a database.

    Args:
        options: Can be:
                - DatabaseOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        Connection in the open state

    Raises
        ConnectionFailure: If the driver cannot connect
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    return Connection(options)
