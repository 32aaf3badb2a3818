"""
Incremental row consumption with backpressure.

A `RowStream` drives a row source (an async iterator, usually
`Executor.stream()`) through a user handler one row at a time. The next row
is requested only after the handler for the current row has finished, so at
most one handler call is ever in flight and rows are handled in source order.

States: IDLE -> STREAMING -> {DRAINING -> DONE, FAILED}
"""
import enum
import inspect
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any

from sqlbridge.exceptions import StreamHandlerError, StreamSourceError
from sqlbridge.options import null_debug

__all__ = ['RowStream', 'StreamState']

logger = logging.getLogger(__name__)


class StreamState(enum.Enum):
    IDLE = 'idle'
    STREAMING = 'streaming'
    DRAINING = 'draining'
    FAILED = 'failed'
    DONE = 'done'


def _passthrough(row: Mapping[str, Any]) -> Mapping[str, Any]:
    return row


class RowStream:
    """Feed rows from `source` to `handler`, pausing while the handler runs.

    Parameters
        source: Async iterator of storage-named rows
        handler: Called once per converted row
        parse_row: Row conversion applied before the handler (e.g. to ORM names)
        debug: Sink for source failures

    A stream can be run once.
    """

    def __init__(self, source: AsyncIterator[Mapping[str, Any]],
                 handler: Callable[[Any], Any],
                 parse_row: Callable[[Mapping[str, Any]], Any] | None = None,
                 debug: Callable[[str], None] = null_debug) -> None:
        self.source = source
        self.handler = handler
        self.parse_row = parse_row or _passthrough
        self.debug = debug
        self.state = StreamState.IDLE
        self.rows_handled = 0

    def _start(self) -> None:
        if self.state is not StreamState.IDLE:
            raise RuntimeError(f'Stream already started (state: {self.state.value})')
        self.state = StreamState.STREAMING

    async def _close_source(self) -> None:
        aclose = getattr(self.source, 'aclose', None)
        if aclose is not None:
            await aclose()

    async def _next_row(self) -> Any:
        """Pull the next row, or raise StopAsyncIteration at the end.
        """
        try:
            return await self.source.__anext__()
        except StopAsyncIteration:
            raise
        except Exception as exc:
            self.state = StreamState.FAILED
            message = f'[STREAM] [ERROR] {exc}'
            self.debug(message)
            logger.error(message)
            raise StreamSourceError(f'Row source failed: {exc}', exc) from exc

    async def _handler_failed(self, exc: BaseException, row: Any) -> StreamHandlerError:
        self.state = StreamState.FAILED
        logger.debug(f'Handler failed after {self.rows_handled} rows, closing source')
        await self._close_source()
        return StreamHandlerError(f'Row handler failed: {exc}', exc, row)

    async def _abandon(self) -> None:
        """Release the source when the handler is cancelled or interrupted."""
        self.state = StreamState.FAILED
        await self._close_source()

    async def _finish(self) -> int:
        self.state = StreamState.DRAINING
        await self._close_source()
        self.state = StreamState.DONE
        logger.debug(f'Stream done: {self.rows_handled} rows')
        return self.rows_handled

    async def run(self) -> int:
        """Consume the stream with an async (or plain) handler.

        Returns
            Number of rows handled

        Raises
            StreamHandlerError: Handler raised; no further rows are read
            StreamSourceError: The source failed between rows
        """
        self._start()
        while True:
            try:
                raw = await self._next_row()
            except StopAsyncIteration:
                return await self._finish()
            row = raw
            try:
                row = self.parse_row(raw)
                outcome = self.handler(row)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                raise (await self._handler_failed(exc, row)) from exc
            except BaseException:
                await self._abandon()
                raise
            self.rows_handled += 1

    async def run_sync(self) -> int:
        """Consume the stream with a synchronous handler.

        Same ordering as `run()`. A handler returning an awaitable is
        rejected since its work could not be ordered against later rows.
        """
        self._start()
        while True:
            try:
                raw = await self._next_row()
            except StopAsyncIteration:
                return await self._finish()
            row = raw
            try:
                row = self.parse_row(raw)
                outcome = self.handler(row)
                if inspect.isawaitable(outcome):
                    if inspect.iscoroutine(outcome):
                        outcome.close()
                    raise TypeError('Synchronous row handler returned an awaitable')
            except Exception as exc:
                raise (await self._handler_failed(exc, row)) from exc
            except BaseException:
                await self._abandon()
                raise
            self.rows_handled += 1

