"""Minimal publish/subscribe channel between the engine and a view layer.

Topics used by the engine:

* ``state_changed`` with payload the reason string (``"economy_tick"``,
  ``"market_tick"``, ``"trade"``, ``"choice"``, ``"reset"``, ``"exchange_rate"``).
* ``trade_executed`` with payload ``ExecutedTrade``.
* ``choice_available`` with payload ``ChoicePrompt``.
* ``choice_resolved`` with payload ``ChoiceResolution``.

Callbacks run synchronously in the publisher's step, so a subscriber always
observes the mutation that triggered the event and never a later one.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

STATE_CHANGED = "state_changed"
TRADE_EXECUTED = "trade_executed"
CHOICE_AVAILABLE = "choice_available"
CHOICE_RESOLVED = "choice_resolved"

Listener = Callable[[Any], None]


class EventBus:
    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, topic: str, listener: Listener) -> Callable[[], None]:
        """Register *listener* for *topic*; returns a function that unsubscribes it."""
        self._listeners[topic].append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners[topic]:
                self._listeners[topic].remove(listener)

        return _unsubscribe

    def publish(self, topic: str, payload: Any = None) -> None:
        for listener in list(self._listeners[topic]):
            try:
                listener(payload)
            except Exception:
                # A broken view must not stop the engine.
                logger.exception("Listener for '%s' failed.", topic)
