"""Choice branches: present sampled reward options and wait for a selection.

``ChoiceEngine.offer`` suspends the typing animation until an external actor
calls ``select``.  There is no timeout.  The pending wait is held as an
``asyncio.Future`` that is resolved exactly once, either by ``select`` (the
reward is applied and saved in the same step) or by ``cancel`` (no reward).
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from typing import Callable

from models.choice import ChoiceOption, ChoicePrompt, ChoiceResolution
from models.config import ChoiceConfig
from models.economy import EconomyState

logger = logging.getLogger(__name__)


class ChoiceEngine:
    def __init__(
        self,
        state: EconomyState,
        config: ChoiceConfig,
        on_change: Callable[[str], None],
        rng: random.Random | None = None,
        on_available: Callable[[ChoicePrompt], None] | None = None,
        on_resolved: Callable[[ChoiceResolution], None] | None = None,
    ) -> None:
        self._state = state
        self._config = config
        self._on_change = on_change
        self._rng = rng or random.Random()
        self._on_available = on_available
        self._on_resolved = on_resolved
        self._prompt: ChoicePrompt | None = None
        self._future: asyncio.Future[ChoiceOption] | None = None

    @property
    def pending(self) -> ChoicePrompt | None:
        """The prompt awaiting a selection, if any."""
        if self._future is None or self._future.done():
            return None
        return self._prompt

    def sample(self) -> list[ChoiceOption]:
        """Shuffle the catalog and take the first ``present_count`` entries."""
        options = list(self._config.catalog)
        self._rng.shuffle(options)
        return options[: self._config.present_count]

    async def offer(self) -> ChoiceOption:
        """Present a fresh prompt and wait until one option is selected.

        Returns the selected option; the reward has already been applied by
        the time this returns.  Raises ``asyncio.CancelledError`` if the
        prompt is cancelled or the awaiting task is cancelled.
        """
        if self._future is not None and not self._future.done():
            raise RuntimeError("A choice is already pending.")

        future: asyncio.Future[ChoiceOption] = asyncio.get_running_loop().create_future()
        self._future = future
        self._prompt = ChoicePrompt(prompt_id=uuid.uuid4().hex[:12], options=self.sample())
        logger.info(
            "Choice available: %s",
            " | ".join(o.display for o in self._prompt.options),
        )
        if self._on_available is not None:
            self._on_available(self._prompt)

        try:
            return await future
        finally:
            if self._future is future:
                self._prompt = None
                self._future = None

    def select(self, index: int) -> ChoiceResolution | None:
        """Resolve the pending prompt with the option at *index*.

        Returns ``None`` when nothing is pending (e.g. a late second click).
        Raises ``ValueError`` if *index* is outside the presented options.
        """
        if self._prompt is None or self._future is None or self._future.done():
            return None
        options = self._prompt.options
        if not 0 <= index < len(options):
            raise ValueError(
                f"Choice index {index} out of range for {len(options)} presented option(s)."
            )

        option = options[index]
        self._state.credit(option.reward)
        resolution = ChoiceResolution(
            prompt_id=self._prompt.prompt_id,
            option=option,
            cash_after=self._state.cash,
        )
        self._future.set_result(option)
        logger.info("Choice selected: %s (cash $%.2f)", option.display, self._state.cash)
        self._on_change("choice")
        if self._on_resolved is not None:
            self._on_resolved(resolution)
        return resolution

    def select_label(self, label: str) -> ChoiceResolution | None:
        if self._prompt is None:
            return None
        for idx, option in enumerate(self._prompt.options):
            if option.label == label:
                return self.select(idx)
        raise ValueError(f"Option '{label}' is not among the presented choices.")

    def cancel(self) -> None:
        """Abandon the pending prompt without applying any reward."""
        if self._future is not None and not self._future.done():
            logger.debug("Pending choice cancelled.")
            self._future.cancel()
