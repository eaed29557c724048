"""Game orchestrator: owns the economy state and the lifecycle of every task.

Lifecycle:
    1. ``boot``: try to restore the save; if restored, start immediately.
    2. ``start``: spawn the economy clock, the market and the typing loop as
       asyncio tasks.  Starting while already running first cancels the
       previous tasks (and any pending choice), so exactly one instance of
       each loop ever runs.
    3. ``reset``: purge the save, rebuild default state, start again.
    4. ``stop``: cancel and await every task (process shutdown).

There is no pause distinct from reset; ``stop`` exists only for shutdown.

All mutation happens on the event loop thread through named operations
(economy tick, market tick, buy, sell, choice selection), and every one of
them is followed by a save in the same step.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import random

from models.choice import ChoicePrompt, ChoiceResolution
from models.config import GameConfig
from models.economy import EconomyState
from models.trade import ExecutedTrade
from simulation.choices import ChoiceEngine
from simulation.economy_clock import EconomyClock
from simulation.events import (
    CHOICE_AVAILABLE,
    CHOICE_RESOLVED,
    STATE_CHANGED,
    TRADE_EXECUTED,
    EventBus,
)
from simulation.market import MarketSimulator
from simulation.persistence import LoadResult, PersistenceStore
from simulation.price_feed import fetch_reference_price_async
from simulation.typing_buffer import TypingBuffer
from simulation.typing_sim import Sleep, TypingSimulator

logger = logging.getLogger(__name__)


class GameStatus(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


def new_economy_state(config: GameConfig, exchange_rate: float) -> EconomyState:
    """Fresh default state: starting cash and the configured basket, nothing owned."""
    return EconomyState(
        cash=config.economy.initial_cash,
        stocks=[s.model_copy(update={"owned": 0}) for s in config.market.stocks],
        exchange_rate=exchange_rate,
    )


class GameOrchestrator:
    """Command surface for a view layer: start, reset, buy, sell, select_choice."""

    def __init__(
        self,
        config: GameConfig,
        persistence: PersistenceStore,
        rng: random.Random | None = None,
        sleep: Sleep = asyncio.sleep,
        events: EventBus | None = None,
    ) -> None:
        self._config = config
        self._persistence = persistence
        self._rng = rng or random.Random()
        self._sleep = sleep
        self.events = events or EventBus()

        self._status = GameStatus.IDLE
        self._tasks: list[asyncio.Task] = []
        self._retired: list[asyncio.Task] = []

        self._state = new_economy_state(config, config.price_feed.default_price)
        self._buffer = TypingBuffer()
        self._build_components()

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def state(self) -> EconomyState:
        return self._state

    @property
    def buffer_text(self) -> str:
        return self._buffer.text

    @property
    def pending_choice(self) -> ChoicePrompt | None:
        return self._choices.pending

    @property
    def tasks(self) -> tuple[asyncio.Task, ...]:
        """Live tasks of the current run (empty when idle)."""
        return tuple(t for t in self._tasks if not t.done())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def boot(self) -> LoadResult:
        """Restore the save if there is one, and start running if so.

        Must be called from inside a running event loop.
        """
        result = self._persistence.load(self._state.exchange_rate)
        if result.restored and result.state is not None:
            self._state = result.state
            self._build_components()
            self.start()
        else:
            logger.info("No save under '%s'; waiting for start.", self._persistence.key)
        return result

    def start(self) -> None:
        """Enter ``RUNNING``, replacing any tasks from a previous start."""
        if self._status is GameStatus.RUNNING:
            logger.info("Restarting: cancelling %d running task(s).", len(self.tasks))
            self._cancel_tasks()

        self._tasks = [
            asyncio.create_task(self._clock.run(), name="economy-clock"),
            asyncio.create_task(self._market.run(), name="market"),
            asyncio.create_task(self._typing.run(), name="typing"),
        ]
        self._status = GameStatus.RUNNING
        logger.info(
            "Game running: cash=$%.2f, net worth=$%.2f",
            self._state.cash,
            self._state.net_worth,
        )

    def reset(self) -> None:
        """Purge the save, rebuild default state and start a fresh run."""
        logger.info("Resetting game; purging save '%s'.", self._persistence.key)
        self._cancel_tasks()
        self._status = GameStatus.IDLE
        self._persistence.purge()

        self._state = new_economy_state(self._config, self._state.exchange_rate)
        self._buffer = TypingBuffer()
        self._build_components()
        self.events.publish(STATE_CHANGED, "reset")
        self.start()

    async def stop(self) -> list[BaseException]:
        """Cancel every task and wait until they have all finished.

        Returns the exceptions of tasks that had crashed before the stop.
        """
        tasks = self._tasks + self._retired
        self._cancel_tasks()
        self._retired = []
        results = await asyncio.gather(*tasks, return_exceptions=True) if tasks else []
        self._status = GameStatus.IDLE
        failures = [
            r for r in results
            if isinstance(r, BaseException) and not isinstance(r, asyncio.CancelledError)
        ]
        for exc in failures:
            logger.error("Task failed before stop: %r", exc)
        logger.info("Game stopped.")
        return failures

    async def refresh_exchange_rate(self) -> float:
        """Fetch the reference price without blocking the loop."""
        rate = await fetch_reference_price_async(self._config.price_feed)
        self._state.exchange_rate = rate
        self.events.publish(STATE_CHANGED, "exchange_rate")
        return rate

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def buy(self, symbol: str) -> ExecutedTrade | None:
        trade = self._market.buy(symbol)
        if trade is not None:
            self.events.publish(TRADE_EXECUTED, trade)
        return trade

    def sell(self, symbol: str) -> ExecutedTrade | None:
        trade = self._market.sell(symbol)
        if trade is not None:
            self.events.publish(TRADE_EXECUTED, trade)
        return trade

    def select_choice(self, index: int) -> ChoiceResolution | None:
        return self._choices.select(index)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_components(self) -> None:
        """(Re)bind every component to the current state and buffer."""
        self._clock = EconomyClock(self._state, self._config.economy, self._on_change)
        self._market = MarketSimulator(
            self._state, self._config.market, self._on_change, rng=self._rng
        )
        self._choices = ChoiceEngine(
            self._state,
            self._config.choices,
            self._on_change,
            rng=self._rng,
            on_available=self._on_choice_available,
            on_resolved=self._on_choice_resolved,
        )
        self._typing = TypingSimulator(
            self._buffer,
            self._choices,
            self._config.typing,
            rng=self._rng,
            sleep=self._sleep,
        )

    def _cancel_tasks(self) -> None:
        self._choices.cancel()
        for task in self._tasks:
            task.cancel()
        self._retired.extend(t for t in self._tasks if not t.done())
        self._retired = [t for t in self._retired if not t.done()]
        self._tasks = []

    def _on_change(self, reason: str) -> None:
        self._persistence.save(self._state)
        self.events.publish(STATE_CHANGED, reason)

    def _on_choice_available(self, prompt: ChoicePrompt) -> None:
        self.events.publish(CHOICE_AVAILABLE, prompt)

    def _on_choice_resolved(self, resolution: ChoiceResolution) -> None:
        self.events.publish(CHOICE_RESOLVED, resolution)
