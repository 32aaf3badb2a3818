"""
MySQL / MariaDB driver used by the ORM.

`MySQLDriver` ties together the identifier converter, the statement builder,
the executor and the row stream. Every operation issues at most one
statement. Rows returned to callers use ORM field names.

Examples
    >>> driver = connect('mysql', config=config)  # doctest: +SKIP
    >>> async with driver:  # doctest: +SKIP
    ...     rows = await driver.find('person', eq('age', 30), 'name', 'asc',
    ...                              -1, 10, None)
"""
import decimal
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import fields
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlbridge.connection import Executor, create_engine_for_options
from sqlbridge.naming import NameConversion, get_name_conversion
from sqlbridge.options import MySQLOptions
from sqlbridge.statements import StatementBuilder
from sqlbridge.strategy import get_strategy
from sqlbridge.stream import RowStream
from sqlbridge.types import ExtraFindOptions, InsertResult, QueryResult
from sqlbridge.types import SortDirection, TypeConverter

from libb import load_options

__all__ = ['MySQLDriver', 'connect']

logger = logging.getLogger(__name__)


def _to_number(value: Any) -> int | float:
    """Normalize an aggregate value; NULL becomes 0.
    """
    if value is None:
        return 0
    if isinstance(value, decimal.Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, (int, float)):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return float(value)


class MySQLDriver:
    """Data source driver for one MySQL or MariaDB database.

    Owns its engine (and therefore its connection pool); call `close()` or
    use `async with` to release it.
    """

    def __init__(self, options: MySQLOptions, engine: AsyncEngine | None = None,
                 naming: NameConversion | None = None) -> None:
        self.options = options
        self.strategy = get_strategy(options.drivername)
        self.naming = naming or get_name_conversion(options)
        self.builder = StatementBuilder(self.naming, self.strategy)
        self.engine = engine if engine is not None else create_engine_for_options(options)
        self.executor = Executor(self.engine, options.debug)

    @classmethod
    def create(cls, options: MySQLOptions | Mapping[str, Any] | None = None,
               **kw: Any) -> 'MySQLDriver':
        """Build a driver from options, a mapping of options or keywords.
        """
        if not isinstance(options, MySQLOptions):
            options = MySQLOptions(**{**dict(options or {}), **kw})
        return cls(options)

    async def __aenter__(self) -> 'MySQLDriver':
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close()

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        await self.executor.dispose()

    def _parse(self, rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
        return self.naming.parse_results(rows)

    # Reads

    async def find_by_key(self, table: str, key_name: str, key_value: Any) -> dict[str, Any] | None:
        """Return the row whose key equals `key_value`, or None.
        """
        spec = self.builder.find_by_key(table, key_name, key_value)
        rows = await self.executor.fetch(spec)
        if not rows:
            return None
        return self._parse(rows)[0]

    async def find(self, table: str, filter: Any = None, sort_by: str | None = None,
                   sort_dir: SortDirection | None = None, skip: int | None = -1,
                   limit: int | None = -1, projection: Iterable[str] | None = None,
                   extra: ExtraFindOptions | Mapping | None = None) -> list[dict[str, Any]]:
        """Find rows.

        Args:
            table: Table name
            filter: Filter to apply, None for all rows
            sort_by: Sort by this field, None for the default order
            sort_dir: 'asc' or 'desc'
            skip: Rows to skip, -1 for no skip
            limit: Maximum rows, -1 for no limit
            projection: Fields to fetch, None for all
            extra: Extra find options (index hint)

        Returns
            Rows with ORM field names, in result order
        """
        spec = self.builder.select(table, filter, sort_by, sort_dir, skip, limit,
                                   projection, extra)
        return self._parse(await self.executor.fetch(spec))

    async def find_frame(self, table: str, filter: Any = None, sort_by: str | None = None,
                         sort_dir: SortDirection | None = None, skip: int | None = -1,
                         limit: int | None = -1, projection: Iterable[str] | None = None,
                         extra: ExtraFindOptions | Mapping | None = None) -> Any:
        """Like `find` but returns the rows through the configured data loader,
        a pandas DataFrame by default. Columns use ORM field names.
        """
        spec = self.builder.select(table, filter, sort_by, sort_dir, skip, limit,
                                   projection, extra)
        result = await self.executor.run(spec)
        rows = self._parse(result.rows)
        columns = [self.naming.to_bean(name) for name in result.fields]
        return self.options.data_loader(rows, columns)

    async def count(self, table: str, filter: Any = None,
                    extra: ExtraFindOptions | Mapping | None = None) -> int:
        """Count rows matching a filter; 0 when nothing matches.
        """
        rows = await self.executor.fetch(self.builder.count(table, filter, extra))
        if not rows:
            return 0
        return int(rows[0].get('count') or 0)

    async def find_stream(self, table: str, filter: Any, sort_by: str | None,
                          sort_dir: SortDirection | None, skip: int | None,
                          limit: int | None, projection: Iterable[str] | None,
                          each: Callable[[dict[str, Any]], Awaitable[Any]],
                          extra: ExtraFindOptions | Mapping | None = None) -> int:
        """Find rows, handing each one to the async `each` handler.

        The next row is not read until `each` has finished with the current
        one. Returns the number of rows handled.

        Raises
            StreamHandlerError: `each` raised; the stream was closed early
            StreamSourceError: The query or the connection failed mid-stream
        """
        spec = self.builder.select(table, filter, sort_by, sort_dir, skip, limit,
                                   projection, extra)
        stream = RowStream(self.executor.stream(spec), each,
                           parse_row=self.naming.parse_row, debug=self.options.debug)
        return await stream.run()

    async def find_stream_sync(self, table: str, filter: Any, sort_by: str | None,
                               sort_dir: SortDirection | None, skip: int | None,
                               limit: int | None, projection: Iterable[str] | None,
                               each: Callable[[dict[str, Any]], Any],
                               extra: ExtraFindOptions | Mapping | None = None) -> int:
        """Find rows, handing each one to the synchronous `each` handler.
        """
        spec = self.builder.select(table, filter, sort_by, sort_dir, skip, limit,
                                   projection, extra)
        stream = RowStream(self.executor.stream(spec), each,
                           parse_row=self.naming.parse_row, debug=self.options.debug)
        return await stream.run_sync()

    async def sum(self, table: str, filter: Any, field: str) -> int | float:
        """Sum a field over the matching rows; 0 when nothing matches.
        """
        rows = await self.executor.fetch(self.builder.sum(table, filter, field))
        if not rows:
            return 0
        return _to_number(rows[0].get(self.naming.to_sql(field)))

    # Writes

    async def insert(self, table: str, row: Mapping[str, Any], key: str | None = None,
                     callback: Callable[[Any], Any] | None = None) -> InsertResult:
        """Insert a row.

        When `key` names a field that is missing or None, the server
        generates it. The generated value is returned in the result and,
        if given, passed to `callback` once.
        """
        spec, generate = self.builder.insert(table, row, key)
        result = await self.executor.run(spec)

        generated = None
        if generate:
            if result.rows:
                generated = result.rows[0].get(self.naming.to_sql(key))
            else:
                generated = result.last_insert_id
            if generated is not None and callback is not None:
                callback(generated)

        return InsertResult(generated_key=generated,
                            affected_rows=result.affected_rows or len(result.rows))

    async def batch_insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert many rows with one statement. Returns the inserted row count.
        """
        spec = self.builder.batch_insert(table, rows)
        if spec is None:
            return 0
        return (await self.executor.run(spec)).affected_rows

    async def update(self, table: str, key_name: str, key_value: Any,
                     updated: Mapping[str, Any]) -> int:
        """Update the fields in `updated` of one row. Returns matched rows.
        """
        spec = self.builder.update(table, key_name, key_value, updated)
        if spec is None:
            return 0
        return (await self.executor.run(spec)).affected_rows

    async def update_many(self, table: str, filter: Any,
                          updated: Mapping[str, Any]) -> int:
        """Update every matching row. Returns the number of matched rows.
        """
        spec = self.builder.update_many(table, filter, updated)
        if spec is None:
            return 0
        return (await self.executor.run(spec)).affected_rows

    async def delete(self, table: str, key_name: str, key_value: Any) -> bool:
        """Delete one row by key. Returns whether the row existed.
        """
        result = await self.executor.run(self.builder.delete(table, key_name, key_value))
        return result.affected_rows != 0

    async def delete_many(self, table: str, filter: Any = None) -> int:
        """Delete every matching row; an empty filter deletes all rows.
        """
        result = await self.executor.run(self.builder.delete_many(table, filter))
        return result.affected_rows

    async def increment(self, table: str, key_name: str, key_value: Any, field: str,
                        amount: int | float) -> None:
        """Atomically add `amount` to a field of one row."""
        await self.executor.run(self.builder.increment(table, key_name, key_value,
                                                       field, amount))

    async def custom_query(self, sql: str, values: Sequence[Any] | None = None) -> QueryResult:
        """Run caller supplied SQL with `?` placeholders.

        The result is returned as the server reports it; rows keep storage
        names.
        """
        return await self.executor.query(sql, TypeConverter.convert_params(values))


@load_options(cls=MySQLOptions)
def connect(options: MySQLOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> MySQLDriver:
    """Create a driver for a MySQL or MariaDB data source.

    Args:
        options: Can be:
                - MySQLOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        MySQLDriver owning a fresh connection pool
    """
    if not isinstance(options, MySQLOptions):
        options_func = load_options(cls=MySQLOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)
    for field in fields(options):
        kw.pop(field.name, None)

    logger.debug(f'Connecting to {options.drivername} database {options.database}'
                 f' at {options.host}:{options.port}')
    return MySQLDriver(options, **kw)
