"""Listener bookkeeping for push-based sources."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

__all__ = ["EventEmitter", "Listener"]

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


@dataclass
class _Registration:
    callback: Listener
    once: bool = False


class EventEmitter:
    """Named-event emitter with ``on``/``once``/``remove_listener`` semantics.

    Listeners for one event are called in registration order. ``emit`` works on
    a snapshot, so listeners added or removed while an event is being delivered
    only affect later emissions.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[_Registration]] = defaultdict(list)

    # ------------------------------------------------------------------ #
    # Subscription
    # ------------------------------------------------------------------ #
    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` on every ``event`` until it is removed."""
        return self._add(event, _Registration(listener))

    def once(self, event: str, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` on the next ``event`` only."""
        return self._add(event, _Registration(listener, once=True))

    def remove_listener(self, event: str, listener: Listener) -> None:
        registrations = self._listeners.get(event)
        if not registrations:
            return
        for index, registration in enumerate(registrations):
            if registration.callback == listener:
                del registrations[index]
                break
        if not registrations:
            self._listeners.pop(event, None)

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    # ------------------------------------------------------------------ #
    # Emission
    # ------------------------------------------------------------------ #
    def emit(self, event: str, *args: Any) -> bool:
        """Deliver ``event`` to its listeners; return whether any existed."""
        registrations = list(self._listeners.get(event, ()))
        if not registrations:
            return False

        for registration in registrations:
            if registration.once:
                self._discard(event, registration)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Emitting %s to %d listener(s)", event, len(registrations)
            )
        for registration in registrations:
            registration.callback(*args)
        return True

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def listeners(self, event: str) -> List[Listener]:
        return [reg.callback for reg in self._listeners.get(event, ())]

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _add(self, event: str, registration: _Registration) -> Callable[[], None]:
        self._listeners[event].append(registration)
        self._on_listener_added(event)

        def unsubscribe() -> None:
            self._discard(event, registration)

        return unsubscribe

    def _discard(self, event: str, registration: _Registration) -> None:
        registrations = self._listeners.get(event)
        if not registrations:
            return
        try:
            registrations.remove(registration)
        except ValueError:
            return
        if not registrations:
            self._listeners.pop(event, None)

    def _on_listener_added(self, event: str) -> None:
        """Hook for subclasses that react to new subscriptions."""
