"""State-change notifications.

Each controller owns its published state and pushes changes to subscribers
instead of exposing shared mutable flags. Publishing happens on the event
loop thread; audio callbacks redispatch before touching state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateChange:
    """A single published field update."""

    source: str
    name: str
    value: Any


Subscriber = Callable[[StateChange], None]


class Publisher:
    """Mixin giving a component a subscriber list and a ``publish`` helper."""

    source_name = "component"

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def publish(self, name: str, value: Any) -> None:
        change = StateChange(source=self.source_name, name=name, value=value)
        for callback in list(self._subscribers):
            try:
                callback(change)
            except Exception:
                # A broken observer must not take the publishing controller down.
                logger.exception("Subscriber failed for %s.%s", self.source_name, name)
