"""One-shot cancellable notifications and the registry that can fail them."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Set

from .source import ReadableSource

__all__ = ["Reject", "Suspension", "WaiterRegistry"]

logger = logging.getLogger(__name__)

Reject = Callable[[BaseException], None]


class WaiterRegistry:
    """Reject callbacks of every suspension that has not settled yet."""

    def __init__(self) -> None:
        self._rejections: Set[Reject] = set()

    def add(self, reject: Reject) -> None:
        self._rejections.add(reject)

    def discard(self, reject: Reject) -> None:
        self._rejections.discard(reject)

    def reject_all(self, error: BaseException) -> int:
        """Fail every registered waiter once with ``error``."""
        rejections = list(self._rejections)
        self._rejections.clear()
        for reject in rejections:
            reject(error)
        return len(rejections)

    def __len__(self) -> int:
        return len(self._rejections)


class Suspension:
    """Wait for the next ``event`` from ``source``.

    ``future`` resolves with ``None`` when the event fires, or fails when the
    registry rejects it. ``cleanup`` detaches the listener and withdraws the
    waiter; it is idempotent and safe after the future settled.
    """

    def __init__(
        self,
        source: ReadableSource,
        event: str,
        registry: WaiterRegistry,
        on_fire: Callable[[], None],
    ) -> None:
        self.event = event
        self.future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._source = source
        self._registry = registry
        self._on_fire = on_fire
        self._attached = True
        self._listener = self._fire
        self._rejection = self._reject

        # "on" rather than "once": cleanup always removes the listener.
        source.on(event, self._listener)
        registry.add(self._rejection)

    def _fire(self, *_args: object) -> None:
        self._registry.discard(self._rejection)
        if self.future.done():
            return
        self._on_fire()
        self.future.set_result(None)

    def _reject(self, error: BaseException) -> None:
        self._registry.discard(self._rejection)
        if not self.future.done():
            self.future.set_exception(error)

    def cleanup(self) -> None:
        if not self._attached:
            return
        self._attached = False
        self._source.remove_listener(self.event, self._listener)
        self._registry.discard(self._rejection)
        if not self.future.done():
            self.future.cancel()
        elif not self.future.cancelled():
            # Mark a losing rejection as retrieved so asyncio does not warn.
            self.future.exception()
