"""
Identifier conversion between storage names and ORM field names.

Storage columns use `snake_case`, ORM beans use `camelCase`. The conversion is
purely lexical and never consults the schema. Three policies exist:

- `IdentityConversion` - names are passed through untouched
- `CaseConversion` - default `camelCase` <-> `snake_case` transform
- `CustomConversion` - caller supplied functions

The active policy is chosen once by `get_name_conversion(options)` with
precedence custom > disabled > default.
"""
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

import cachetools

if TYPE_CHECKING:
    from sqlbridge.options import MySQLOptions

__all__ = [
    'NameConversion',
    'IdentityConversion',
    'CaseConversion',
    'CustomConversion',
    'get_name_conversion',
    'to_snake_case',
    'to_camel_case',
    'normalize_results',
]

logger = logging.getLogger(__name__)

_UPPER_BOUNDARY = re.compile(r'(?<=[^_])(?=[A-Z])')
_UNDERSCORE_RUN = re.compile(r'(?<=[^_])_+([a-zA-Z])')


@cachetools.cached(cache=cachetools.LRUCache(maxsize=4096))
def to_snake_case(name: str) -> str:
    """Convert an ORM field name to its storage column name.

    >>> to_snake_case('hasDriverLicense')
    'has_driver_license'
    >>> to_snake_case('id')
    'id'
    """
    return _UPPER_BOUNDARY.sub('_', name).lower()


@cachetools.cached(cache=cachetools.LRUCache(maxsize=4096))
def to_camel_case(name: str) -> str:
    """Convert a storage column name to its ORM field name.

    Leading and trailing underscores are kept, runs of inner underscores
    before a letter collapse into a single word boundary.

    >>> to_camel_case('has_driver_license')
    'hasDriverLicense'
    >>> to_camel_case('_private')
    '_private'
    """
    return _UNDERSCORE_RUN.sub(lambda m: m.group(1).upper(), name)


def _convert_rows(rows: Iterable[Mapping[str, Any]],
                  convert: Callable[[str], str]) -> list[dict[str, Any]]:
    """Rename the keys of every row, converting each distinct key once.
    """
    names: dict[str, str] = {}
    result = []
    for row in rows:
        renamed = {}
        for key, value in row.items():
            if key not in names:
                names[key] = convert(key)
            renamed[names[key]] = value
        result.append(renamed)
    return result


def normalize_results(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Convert storage-named rows to ORM naming, keeping row and key order.
    """
    return _convert_rows(rows, to_camel_case)


class NameConversion(ABC):
    """Policy that maps identifiers between storage and ORM naming.
    """

    @abstractmethod
    def to_sql(self, name: str) -> str:
        """ORM name -> storage name."""

    @abstractmethod
    def to_bean(self, name: str) -> str:
        """Storage name -> ORM name."""

    def parse_results(self, rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Convert every key of every fetched row with `to_bean`.
        """
        return _convert_rows(rows, self.to_bean)

    def parse_row(self, row: Mapping[str, Any]) -> dict[str, Any]:
        return self.parse_results([row])[0]


class IdentityConversion(NameConversion):
    """Identifier conversion disabled.
    """

    def to_sql(self, name: str) -> str:
        return name

    def to_bean(self, name: str) -> str:
        return name

    def parse_results(self, rows):
        return [dict(row) for row in rows]


class CaseConversion(NameConversion):
    """Default `camelCase` <-> `snake_case` policy.
    """

    def to_sql(self, name: str) -> str:
        return to_snake_case(name)

    def to_bean(self, name: str) -> str:
        return to_camel_case(name)

    def parse_results(self, rows):
        return normalize_results(rows)


class CustomConversion(NameConversion):
    """Caller supplied conversion functions.

    When `parse_results` is omitted, rows are converted key by key with
    `to_bean`.
    """

    def __init__(self, to_sql: Callable[[str], str], to_bean: Callable[[str], str],
                 parse_results: Callable[[list], list] | None = None) -> None:
        if not callable(to_sql) or not callable(to_bean):
            raise ValueError('to_sql and to_bean must be callable')
        self._to_sql = to_sql
        self._to_bean = to_bean
        self._parse_results = parse_results

    def to_sql(self, name: str) -> str:
        return self._to_sql(name)

    def to_bean(self, name: str) -> str:
        return self._to_bean(name)

    def parse_results(self, rows):
        if self._parse_results is not None:
            return self._parse_results(list(rows))
        return super().parse_results(rows)


def _coerce_custom(custom: Any) -> NameConversion:
    """Accept a `NameConversion`, a mapping or an object exposing the functions.
    """
    if isinstance(custom, NameConversion):
        return custom
    if isinstance(custom, Mapping):
        return CustomConversion(custom['to_sql'], custom['to_bean'],
                                custom.get('parse_results'))
    return CustomConversion(custom.to_sql, custom.to_bean,
                            getattr(custom, 'parse_results', None))


def get_name_conversion(options: 'MySQLOptions') -> NameConversion:
    """Select the identifier conversion policy for a data source.
    """
    if options.custom_identifier_conversion is not None:
        logger.debug('Using custom identifier conversion')
        return _coerce_custom(options.custom_identifier_conversion)
    if options.disable_identifier_conversion:
        logger.debug('Identifier conversion disabled')
        return IdentityConversion()
    return CaseConversion()
