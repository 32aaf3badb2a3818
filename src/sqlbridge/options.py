from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pandas as pd
import pyarrow as pa
from sqlbridge.strategy import get_available_dialects, get_strategy_class
from sqlbridge.strategy import is_supported_dialect

from libb import ConfigOptions

__all__ = [
    'MySQLOptions',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
    'iterdict_data_loader',
    'null_debug',
]


def null_debug(msg: str) -> None:
    """Default debug sink, discards messages."""


def iterdict_data_loader(data, columns, **kwargs) -> list[dict]:
    """Minimal data loader.

    Accepts additional keyword arguments for compatibility with other data
    loaders, but doesn't use them.
    """
    if not data:
        return []
    return list(data)


def pandas_numpy_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    """
    if not data:
        return pd.DataFrame(columns=list(columns))
    return pd.DataFrame.from_records(list(data), columns=list(columns))


def pandas_pyarrow_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """PyArrow-based pandas DataFrame loader.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    """
    columns = list(columns)
    if not data:
        return pd.DataFrame(columns=columns)
    columns_data = [[row.get(col) for row in data] for col in columns]
    return pa.table(columns_data, names=columns).to_pandas(types_mapper=pd.ArrowDtype)


@dataclass
class MySQLOptions(ConfigOptions):
    """Options

    supported driver names: `mysql`, `mariadb`

    Connection pool options:
    - connections: Pool size, also the maximum number of connections (default: 4)
    - pool_recycle: Seconds before a pooled connection is replaced (default: 300)
    - timeout: Connect timeout in seconds, 0 for the driver default

    Identifier conversion (precedence custom > disabled > default):
    - custom_identifier_conversion: A `NameConversion` or an object/mapping
      providing `to_sql`, `to_bean` and optionally `parse_results`
    - disable_identifier_conversion: Use storage names unchanged
    """
    drivername: str = 'mysql'
    host: str = None
    port: int = 3306
    user: str = None
    password: str = None
    database: str = None
    connections: int = 4
    timeout: int = 0
    pool_recycle: int = 300
    timezone: str = '+00:00'
    debug: Callable[[str], None] | None = None
    disable_identifier_conversion: bool = False
    custom_identifier_conversion: Any = None
    data_loader: Callable[..., Any] | None = None

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)
        if self.port is None:
            self.port = 3306
        if self.connections is None:
            self.connections = 4
        if not isinstance(self.connections, int) or self.connections < 1:
            raise ValueError('connections must be a positive integer')
        if self.debug is None:
            self.debug = null_debug
        if not callable(self.debug):
            raise ValueError('debug must be a callable accepting one string')
        if self.data_loader is None:
            self.data_loader = pandas_numpy_data_loader
