"""
Test doubles for the execution layer.

Provides an in-memory row source for stream tests and a fake executor that
records every statement, so driver tests run without a server.

Usage:
    def test_find(mock_driver):
        driver, executor = mock_driver()
        executor.results.append(QueryResult(rows=[{'id': 1}]))
"""
import pytest
from sqlbridge.driver import MySQLDriver
from sqlbridge.options import MySQLOptions
from sqlbridge.types import QueryResult, StatementSpec
from unittest.mock import AsyncMock, MagicMock


class AsyncRowSource:
    """Async iterator over a list of rows that tracks pulls and closing.

    `fail_at` raises `error` when that row index is requested.
    """

    def __init__(self, rows, fail_at=None, error=None):
        self.rows = list(rows)
        self.fail_at = fail_at
        self.error = error or ConnectionError('lost connection to server')
        self.pulled = 0
        self.closed = False
        self.events = []

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.closed:
            raise StopAsyncIteration
        if self.fail_at is not None and self.pulled == self.fail_at:
            self.events.append(('fail', self.pulled))
            raise self.error
        if self.pulled >= len(self.rows):
            raise StopAsyncIteration
        row = self.rows[self.pulled]
        self.pulled += 1
        self.events.append(('pull', self.pulled - 1))
        return row

    async def aclose(self):
        self.closed = True
        self.events.append(('close', self.pulled))


class FakeExecutor:
    """Records statements and replays queued results.
    """

    def __init__(self):
        self.specs = []
        self.results = []
        self.stream_rows = []
        self.sources = []
        self.disposed = False

    def _next_result(self):
        if self.results:
            return self.results.pop(0)
        return QueryResult()

    async def run(self, spec):
        self.specs.append(spec)
        return self._next_result()

    async def fetch(self, spec):
        return (await self.run(spec)).rows

    async def query(self, sql, values=None):
        return await self.run(StatementSpec(sql, list(values or [])))

    def stream(self, spec):
        self.specs.append(spec)
        source = AsyncRowSource(self.stream_rows)
        self.sources.append(source)
        return source

    async def dispose(self):
        self.disposed = True


@pytest.fixture
def row_source():
    """Factory for `AsyncRowSource` instances."""
    def factory(rows, fail_at=None, error=None):
        return AsyncRowSource(rows, fail_at=fail_at, error=error)

    return factory


@pytest.fixture
def mock_driver():
    """
    Factory returning a `(driver, executor)` pair with a fake executor.

    Keyword arguments are passed to `MySQLOptions`.
    """
    def factory(**kw):
        settings = {'host': 'localhost', 'database': 'test_db'}
        settings.update(kw)
        options = MySQLOptions(**settings)
        engine = MagicMock()
        engine.dispose = AsyncMock()
        driver = MySQLDriver(options, engine=engine)
        executor = FakeExecutor()
        driver.executor = executor
        return driver, executor

    return factory
