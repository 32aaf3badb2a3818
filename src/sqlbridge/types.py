"""
Shared value types and parameter conversion.

This module provides:
- TypeConverter: Convert Python values to MySQL-compatible bind values
- StatementSpec: A compiled statement and its positional values
- ExtraFindOptions, InsertResult, QueryResult: operation shapes
"""
import datetime
import decimal
import enum
import json
import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SortDirection = Literal['asc', 'desc']

SCALAR_TYPES = (str, int, float, bool, decimal.Decimal, bytes, bytearray,
                datetime.date, datetime.datetime, datetime.time,
                datetime.timedelta)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime.date, datetime.datetime, datetime.time)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode('utf-8', errors='replace')
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f'Object of type {type(value).__name__} is not JSON serializable')


class TypeConverter:
    """Conversion of Python values to bind parameters.

    Handles NumPy and pandas scalars, NaN/NaT, enums and structured values.
    """

    @staticmethod
    def convert_value(value: Any) -> Any:
        """Convert a single value to a database-compatible format.

        Dicts, lists and tuples are stored as JSON text.
        """
        if value is None:
            return None

        if isinstance(value, enum.Enum):
            return TypeConverter.convert_value(value.value)

        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return None

        if isinstance(value, np.generic):
            if isinstance(value, np.floating) and np.isnan(value):
                return None
            if isinstance(value, np.datetime64):
                if np.isnat(value):
                    return None
                return pd.Timestamp(value).to_pydatetime()
            return value.item()

        if value is pd.NaT:
            return None

        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()

        if isinstance(value, SCALAR_TYPES):
            return value

        if isinstance(value, (Mapping, list, tuple)):
            return json.dumps(value, default=_json_default)

        return value

    @staticmethod
    def convert_params(params: Sequence[Any] | None) -> list[Any]:
        """Convert a sequence of positional parameters."""
        if params is None:
            return []
        return [TypeConverter.convert_value(v) for v in params]


def is_scalar(value: Any) -> bool:
    """Check whether a value may occupy a single placeholder without conversion
    to JSON.
    """
    return value is None or isinstance(value, (*SCALAR_TYPES, enum.Enum, np.generic)) \
        or value is pd.NaT


@dataclass(frozen=True, slots=True)
class StatementSpec:
    """Parameterized SQL text with its positional values."""
    sql: str
    values: list[Any] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ExtraFindOptions:
    """Sideband directives for SELECT/COUNT assembly."""
    use_index: str | None = None

    @classmethod
    def coerce(cls, value: Any) -> 'ExtraFindOptions | None':
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(use_index=value.get('use_index', value.get('useIndex')))
        raise TypeError(f'Unsupported extra find options: {value!r}')


@dataclass(frozen=True, slots=True)
class InsertResult:
    """Outcome of a single-row insert."""
    generated_key: Any = None
    affected_rows: int = 0


@dataclass(slots=True)
class QueryResult:
    """Rows and counters reported by the server for one statement."""
    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)
    affected_rows: int = 0
    last_insert_id: Any = None
