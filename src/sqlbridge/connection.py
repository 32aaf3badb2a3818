"""
Engine creation and statement execution with SQLAlchemy asyncio.

This module provides:
1. `create_engine_for_options()` for building the pooled `AsyncEngine`
2. The `Executor` class, which runs one compiled statement per call

The Executor is the only place that talks to the pool. It writes the
literal-rendered statement to the debug sink, binds the positional values,
runs the statement exactly once and maps driver failures to
`ExecutionError`. There are no retries.
"""
import logging
import time
from collections.abc import AsyncIterator, Callable
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlbridge.exceptions import wrap_driver_error
from sqlbridge.options import MySQLOptions, null_debug
from sqlbridge.sql import bind_params, format_sql
from sqlbridge.strategy import get_strategy
from sqlbridge.types import QueryResult, StatementSpec

from libb import attrdict

__all__ = [
    'Executor',
    'create_url_from_options',
    'create_engine_for_options',
]

logger = logging.getLogger(__name__)

DRIVER_ERRORS = (sa.exc.DBAPIError, sa.exc.TimeoutError)


def create_url_from_options(options: MySQLOptions) -> sa.URL:
    """Convert MySQLOptions to a SQLAlchemy URL.
    """
    return get_strategy(options.drivername).build_connection_url(options)


def create_engine_for_options(options: MySQLOptions,
                              engine_factory: Callable[..., AsyncEngine] = create_async_engine,
                              **kwargs: Any) -> AsyncEngine:
    """Create the pooled asyncio engine for a data source.

    The engine owns the connection pool; each driver instance gets its own.
    """
    strategy = get_strategy(options.drivername)
    url = strategy.build_connection_url(options)

    engine_kwargs: dict[str, Any] = {'echo': False}
    engine_kwargs.update(strategy.get_engine_kwargs(options))
    engine_kwargs.update(kwargs)

    engine = engine_factory(url, **engine_kwargs)
    logger.debug(f'Created engine for {options.drivername} at {options.host}:{options.port}'
                 f' with {options.connections} connections')
    return engine


def _row(row: Any) -> attrdict:
    return attrdict(row._mapping)


class Executor:
    """Runs compiled statements against an `AsyncEngine`.

    Tracks call counts and execution time like a connection wrapper, and
    emits every statement to the debug sink before it runs.
    """

    def __init__(self, engine: AsyncEngine, debug: Callable[[str], None] = null_debug) -> None:
        self.engine = engine
        self.debug = debug
        self.calls = 0
        self.time = 0.0

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def emit(self, sql: str, values: list[Any] | None = None) -> None:
        """Write the literal-rendered statement to the debug sink and log.
        """
        message = f'[MYSQL] {format_sql(sql, values)}'
        self.debug(message)
        logger.debug(message)

    def emit_error(self, err: BaseException) -> None:
        self.debug(f'[MYSQL] [ERROR] {err}')

    async def run(self, spec: StatementSpec) -> QueryResult:
        """Execute a statement once inside its own transaction.

        Returns
            QueryResult with rows (when the statement returns rows), column
            names, affected row count and last insert id

        Raises
            ExecutionError: On any driver, server or pool failure
        """
        self.emit(spec.sql, spec.values)
        clause, params = bind_params(spec.sql, spec.values)
        start = time.time()
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(clause, params)
                if result.returns_rows:
                    fields = list(result.keys())
                    rows = [_row(row) for row in result]
                    return QueryResult(rows=rows, fields=fields,
                                       affected_rows=max(result.rowcount, 0))
                return QueryResult(affected_rows=max(result.rowcount, 0),
                                   last_insert_id=result.lastrowid or None)
        except DRIVER_ERRORS as err:
            logger.error(f'Error with query:\nSQL:\n{spec.sql}\nargs: {spec.values}')
            self.emit_error(err)
            raise wrap_driver_error(err) from err
        finally:
            elapsed = time.time() - start
            self.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')

    async def fetch(self, spec: StatementSpec) -> list[attrdict]:
        """Execute a statement and return its rows."""
        return (await self.run(spec)).rows

    async def query(self, sql: str, values: list[Any] | None = None) -> QueryResult:
        """Execute caller supplied SQL with `?` placeholders.
        """
        return await self.run(StatementSpec(sql, list(values or [])))

    async def stream(self, spec: StatementSpec) -> AsyncIterator[attrdict]:
        """Yield rows one at a time from a server-side cursor.

        Nothing is read from the server until the consumer asks for the
        next row. Closing the generator releases the cursor and connection.

        Raises
            ExecutionError: On any driver, server or pool failure
        """
        self.emit(spec.sql, spec.values)
        clause, params = bind_params(spec.sql, spec.values)
        start = time.time()
        try:
            async with self.engine.connect() as conn:
                result = await conn.stream(clause, params)
                try:
                    async for row in result:
                        yield _row(row)
                finally:
                    await result.close()
        except DRIVER_ERRORS as err:
            logger.error(f'Error with streamed query:\nSQL:\n{spec.sql}\nargs: {spec.values}')
            self.emit_error(err)
            raise wrap_driver_error(err) from err
        finally:
            elapsed = time.time() - start
            self.addcall(elapsed)
            logger.debug(f'Stream time: {elapsed:.4f}s')

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
        logger.debug(f'Engine disposed: {self.calls} queries in {self.time:.2f}s'
                     f' (avg: {self.time/max(1, self.calls):.3f}s per query)')
