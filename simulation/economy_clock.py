"""Passive income: a fixed cash increment on every economy tick."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from models.config import EconomyConfig
from models.economy import EconomyState

logger = logging.getLogger(__name__)


class EconomyClock:
    """Adds ``config.increment`` to cash once per ``config.period_seconds``.

    ``on_change`` is called with the reason ``"economy_tick"`` after every
    increment; the orchestrator uses it to save.
    """

    def __init__(
        self,
        state: EconomyState,
        config: EconomyConfig,
        on_change: Callable[[str], None],
    ) -> None:
        self._state = state
        self._config = config
        self._on_change = on_change
        self.ticks = 0

    def tick(self) -> None:
        """Apply one tick: credit the increment, then request a save."""
        self._state.credit(self._config.increment)
        self.ticks += 1
        logger.debug("Economy tick %d: cash=%.2f", self.ticks, self._state.cash)
        self._on_change("economy_tick")

    async def run(self) -> None:
        """Tick forever; cancel the task to stop."""
        while True:
            await asyncio.sleep(self._config.period_seconds)
            self.tick()
