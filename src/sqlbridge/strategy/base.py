"""
Base strategy interface for dialect-specific statement details.

Defines the abstract base class that every MySQL-protocol dialect inherits
from. The statement builder asks the strategy for the parts of the SQL text
that differ between servers (index hints, pagination, generated key return)
and for the engine settings used to reach the server.
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlbridge.sql import quote_identifier as sql_quote_identifier

if TYPE_CHECKING:
    from sqlbridge.options import MySQLOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DialectStrategy']] = {}

# MySQL has no OFFSET without LIMIT; this is the documented "all rows" bound
MAX_LIMIT = 18446744073709551615


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('mysql')
        class MySQLStrategy(DialectStrategy):
            ...
    """
    def decorator(cls: type['DialectStrategy']) -> type['DialectStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DialectStrategy(ABC):
    """Base class for dialect-specific statement details.
    """

    driver = 'aiomysql'

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'mysql', 'mariadb')."""

    @property
    @abstractmethod
    def supports_returning(self) -> bool:
        """Whether INSERT ... RETURNING is available."""

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.
        """
        return ['host', 'database']

    @classmethod
    def validate_options(cls, options: 'MySQLOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or empty
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or empty')

    def build_connection_url(self, options: 'MySQLOptions') -> sa.URL:
        """Build the SQLAlchemy URL for this dialect.
        """
        return sa.URL.create(
            drivername=f'{self.dialect_name}+{self.driver}',
            username=options.user,
            password=options.password,
            host=options.host,
            port=options.port,
            database=options.database,
            )

    def get_engine_kwargs(self, options: 'MySQLOptions') -> dict[str, Any]:
        """Return `create_async_engine` kwargs for this dialect.

        The pool is bounded to `options.connections` with no overflow.
        """
        connect_args: dict[str, Any] = {
            'init_command': f"SET time_zone = '{options.timezone}'",
            }
        if options.timeout:
            connect_args['connect_timeout'] = options.timeout
        return {
            'pool_size': options.connections,
            'max_overflow': 0,
            'pool_recycle': options.pool_recycle,
            'pool_pre_ping': True,
            'connect_args': connect_args,
            }

    def quote_identifier(self, identifier: str) -> str:
        """Quote a table, column or index name.
        """
        return sql_quote_identifier(identifier)

    def index_hint(self, index: str) -> str:
        """Clause that forces the given index."""
        return f'FORCE INDEX ({self.quote_identifier(index)})'

    def pagination_clause(self, limit: int | None, skip: int | None) -> str:
        """LIMIT / OFFSET clause, or '' when neither applies.

        Both arguments must already be non-negative integers or None.
        """
        parts = []
        if limit is not None:
            parts.append(f'LIMIT {limit}')
        if skip is not None:
            if limit is None:
                parts.append(f'LIMIT {MAX_LIMIT}')
            parts.append(f'OFFSET {skip}')
        return ' '.join(parts)

    def returning_clause(self, column: str) -> str:
        """Clause asking the server to return a generated column.
        """
        if not self.supports_returning:
            return ''
        return f'RETURNING {self.quote_identifier(column)}'
