"""Readable source protocol and an in-memory push-based implementation."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Callable, Deque, Optional, Protocol, runtime_checkable

from .events import EventEmitter, Listener
from .exceptions import ValidationError

__all__ = ["MemoryReadable", "ReadableSource"]

logger = logging.getLogger(__name__)


@runtime_checkable
class ReadableSource(Protocol):
    """What the iterator needs from a push-based source.

    The source emits ``"readable"`` (possibly spuriously), then exactly one of
    ``"end"`` or ``"error"``. ``read`` never blocks and returns ``None`` when
    nothing is currently available.
    """

    def on(self, event: str, listener: Listener) -> Any: ...

    def once(self, event: str, listener: Listener) -> Any: ...

    def remove_listener(self, event: str, listener: Listener) -> Any: ...

    def read(self, size: Optional[int] = None) -> Any: ...


class MemoryReadable(EventEmitter):
    """Buffered readable fed by ``push``/``end``/``destroy``.

    In object mode every pushed item is one unit and ``read`` returns a single
    item. Otherwise chunks are ``bytes`` or ``str`` and ``read(size)`` slices
    across chunk boundaries. Notifications are scheduled on the running event
    loop rather than delivered from inside ``push``.
    """

    def __init__(self, *, object_mode: bool = False) -> None:
        super().__init__()
        self.object_mode = object_mode
        self._buffer: Deque[Any] = deque()
        self._length = 0
        self._ending = False
        self._end_emitted = False
        self._end_scheduled = False
        self._readable_scheduled = False
        self._destroyed = False
        # A sized read came up short; only new data can satisfy it.
        self._awaiting_push = False

    @property
    def readable_length(self) -> int:
        return self._length

    @property
    def ended(self) -> bool:
        return self._end_emitted

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    # ------------------------------------------------------------------ #
    # Producer side
    # ------------------------------------------------------------------ #
    def push(self, chunk: Any) -> None:
        if self._ending or self._destroyed:
            raise ValidationError("push() after end() or destroy()")
        if chunk is None:
            raise ValidationError("cannot push None; call end() instead")
        if not self.object_mode:
            if not isinstance(chunk, (bytes, bytearray, str)):
                raise ValidationError(
                    f"expected bytes or str chunk, got {type(chunk).__name__}"
                )
            if self._buffer and type(chunk) is not type(self._buffer[0]):
                raise ValidationError("cannot mix bytes and str chunks")
            if not chunk:
                return
        self._buffer.append(chunk)
        self._awaiting_push = False
        self._length += 1 if self.object_mode else len(chunk)
        self._schedule(self._emit_readable, "_readable_scheduled")

    def end(self) -> None:
        if self._ending or self._destroyed:
            return
        self._ending = True
        self._awaiting_push = False
        if self._length:
            self._schedule(self._emit_readable, "_readable_scheduled")
        else:
            self._schedule(self._emit_end, "_end_scheduled")

    def destroy(self, error: Optional[BaseException] = None) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self._buffer.clear()
        self._length = 0
        if error is not None:
            logger.debug("Destroying source with error: %r", error)
            self._call_soon(lambda: self.emit("error", error))

    # ------------------------------------------------------------------ #
    # Consumer side
    # ------------------------------------------------------------------ #
    def read(self, size: Optional[int] = None) -> Any:
        if self._destroyed or not self._length:
            self._maybe_schedule_end()
            return None

        if self.object_mode:
            chunk = self._buffer.popleft()
            self._length -= 1
        elif size is None:
            chunk = self._take(self._length)
        elif size <= self._length:
            chunk = self._take(size)
        elif self._ending:
            chunk = self._take(self._length)
        else:
            self._awaiting_push = True
            return None

        self._maybe_schedule_end()
        return chunk

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _take(self, size: int) -> Any:
        parts = []
        remaining = size
        while remaining:
            head = self._buffer[0]
            if len(head) <= remaining:
                parts.append(self._buffer.popleft())
                remaining -= len(head)
            else:
                parts.append(head[:remaining])
                self._buffer[0] = head[remaining:]
                remaining = 0
        self._length -= size
        return parts[0][:0].join(parts)

    def _maybe_schedule_end(self) -> None:
        if self._ending and not self._length and not self._destroyed:
            self._schedule(self._emit_end, "_end_scheduled")

    def _on_listener_added(self, event: str) -> None:
        if event != "readable" or self._end_emitted or self._destroyed:
            return
        if (self._length and not self._awaiting_push) or self._ending:
            self._schedule(self._emit_readable, "_readable_scheduled")

    def _emit_readable(self) -> None:
        self._readable_scheduled = False
        if self._end_emitted or self._destroyed:
            return
        self.emit("readable")

    def _emit_end(self) -> None:
        self._end_scheduled = False
        if self._end_emitted or self._destroyed or self._length:
            return
        self._end_emitted = True
        self.emit("end")

    def _schedule(self, callback: Callable[[], None], flag: str) -> None:
        if getattr(self, flag):
            return
        setattr(self, flag, True)
        self._call_soon(callback)

    @staticmethod
    def _call_soon(callback: Callable[[], None]) -> None:
        asyncio.get_running_loop().call_soon(callback)
