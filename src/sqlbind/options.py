from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pandas as pd

from libb import ConfigOptions, attrdict, scriptname

__all__ = [
    'DatabaseOptions',
    'SUPPORTED_DRIVERS',
    'iterdict_data_loader',
    'pandas_numpy_data_loader',
]

SUPPORTED_DRIVERS = ('postgresql', 'sqlite')


def iterdict_data_loader(data, columns, **kwargs) -> list[attrdict]:
    """Default loader: one attribute dictionary per row.
    """
    if not data:
        return []
    return [attrdict(row) for row in data]


def pandas_numpy_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    """
    if not data:
        return pd.DataFrame(columns=list(columns))
    return pd.DataFrame.from_records(list(data), columns=list(columns))


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`, `sqlite`

    `hostname` is a host name or, when it starts with `/`, the directory of
    a unix socket. `validate_schema` checks tables and columns before each
    statement; `decode_values` converts numeric and entity-escaped text in
    selected rows.
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    validate_schema: bool = True
    decode_values: bool = True
    data_loader: Callable[..., Any] | None = None

    def __post_init__(self):
        if self.drivername not in SUPPORTED_DRIVERS:
            raise ValueError(f'drivername must be one of: {list(SUPPORTED_DRIVERS)}')
        if not self.database:
            raise ValueError('database is required')
        if self.drivername == 'postgresql' and not self.hostname:
            raise ValueError('hostname is required for postgresql')
        self.appname = self.appname or scriptname() or 'python_console'
        if self.data_loader is None:
            self.data_loader = iterdict_data_loader

    @property
    def uses_socket(self) -> bool:
        return bool(self.hostname) and self.hostname.startswith('/')
