"""Pull-based async iteration over a push-based readable source.

The iterator keeps the source idle between requests: each ``next()`` either
reads what the source already has, or subscribes to ``"readable"`` and
``"end"`` just long enough to learn which one comes first. Source errors are
observed for the iterator's whole lifetime and fail every pending and later
request with the same exception.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from types import TracebackType
from typing import Any, Optional

from .config import IteratorOptions
from .exceptions import SourceError
from .source import ReadableSource
from .waiters import Suspension, WaiterRegistry

__all__ = [
    "Iteration",
    "State",
    "StreamAsyncIterator",
    "stream_to_async_iterator",
]

logger = logging.getLogger(__name__)


class State(Enum):
    NOT_READABLE = "not readable"
    READABLE = "readable"
    ENDED = "ended"
    ERRORED = "errored"


_TERMINAL = frozenset({State.ENDED, State.ERRORED})


@dataclass(frozen=True)
class Iteration:
    """Result of one ``next()`` call."""

    done: bool
    value: Any = None


class StreamAsyncIterator:
    """Wrap a readable source so it can be consumed with ``async for``.

    Reads happen only in response to ``next()``; when ``options.size`` is set
    every read asks the source for exactly that many units. One consumer is
    assumed: do not call ``next()`` again before the previous call settled.
    """

    def __init__(
        self, source: ReadableSource, options: Optional[IteratorOptions] = None
    ) -> None:
        options = (options or IteratorOptions()).validate()
        self._source = source
        self._size = options.size
        self._state = State.NOT_READABLE
        self._error: Optional[BaseException] = None
        self._error_traceback: Optional[TracebackType] = None
        self._waiters = WaiterRegistry()

        source.once("error", self._handle_error)
        source.once("end", self._handle_end)

    @property
    def state(self) -> State:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def pending_waiters(self) -> int:
        return len(self._waiters)

    # ------------------------------------------------------------------ #
    # Iteration
    # ------------------------------------------------------------------ #
    async def next(self) -> Iteration:
        """Return the next chunk, or ``done`` once the source ended.

        Raises the source's error if it failed, now or at any earlier point.
        """
        while True:
            if self._state is State.ENDED:
                return Iteration(done=True, value=None)
            if self._state is State.ERRORED:
                # Every raise starts from the traceback captured on arrival.
                raise self._error.with_traceback(self._error_traceback)
            if self._state is State.READABLE:
                data = self._read()
                if not _is_empty(data):
                    return Iteration(done=False, value=data)
                # Readability was transient; wait again.
                self._transition(State.NOT_READABLE)
                continue
            await self._until_readable_or_end()

    def __aiter__(self) -> "StreamAsyncIterator":
        return self

    async def __anext__(self) -> Any:
        iteration = await self.next()
        if iteration.done:
            raise StopAsyncIteration
        return iteration.value

    # ------------------------------------------------------------------ #
    # Suspension
    # ------------------------------------------------------------------ #
    async def _until_readable_or_end(self) -> None:
        readable = Suspension(
            self._source, "readable", self._waiters, self._mark_readable
        )
        end = Suspension(self._source, "end", self._waiters, self._mark_ended)
        logger.debug("Suspending until source is readable or ended")
        try:
            done, _ = await asyncio.wait(
                {readable.future, end.future}, return_when=asyncio.FIRST_COMPLETED
            )
            for future in done:
                future.result()
        finally:
            readable.cleanup()
            end.cleanup()

    def _read(self) -> Any:
        if self._size is None:
            return self._source.read()
        return self._source.read(self._size)

    # ------------------------------------------------------------------ #
    # State transitions
    # ------------------------------------------------------------------ #
    def _mark_readable(self) -> None:
        if self._state not in _TERMINAL:
            self._transition(State.READABLE)

    def _mark_ended(self) -> None:
        if self._state not in _TERMINAL:
            self._transition(State.ENDED)

    def _handle_end(self, *_args: object) -> None:
        self._mark_ended()

    def _handle_error(self, error: Any = None) -> None:
        if not isinstance(error, BaseException):
            error = SourceError(error)
        self._error = error
        self._error_traceback = error.__traceback__
        self._transition(State.ERRORED)
        rejected = self._waiters.reject_all(error)
        logger.debug(
            "Source errored (%r); rejected %d pending waiter(s)", error, rejected
        )

    def _transition(self, state: State) -> None:
        if logger.isEnabledFor(logging.DEBUG) and state is not self._state:
            logger.debug("State %s -> %s", self._state.value, state.value)
        self._state = state


def stream_to_async_iterator(
    source: ReadableSource,
    *,
    size: Optional[int] = None,
    options: Optional[IteratorOptions] = None,
) -> StreamAsyncIterator:
    """Build an iterator from keyword options or an ``IteratorOptions``."""
    if options is None:
        options = IteratorOptions(size=size)
    elif size is not None:
        options = IteratorOptions(size=size)
    return StreamAsyncIterator(source, options)


def _is_empty(data: Any) -> bool:
    if data is None:
        return True
    return isinstance(data, (bytes, bytearray, str)) and not data
