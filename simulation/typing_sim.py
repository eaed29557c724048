"""Autonomous code-typing animation.

Cycle per line::

    SelectingLine -> TypingChar -> (MaybeBackspacing) -> LineDone
        -> (MaybeChoiceBranch) -> (MaybeBufferClear) -> SelectingLine

The loop never terminates on its own; the orchestrator runs it as a task and
cancels that task on stop/reset.  Suspension points are the randomized
per-character and per-backspace delays, the clear pauses, and the wait inside
``ChoiceEngine.offer``.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

from models.config import TypingConfig
from simulation.choices import ChoiceEngine
from simulation.typing_buffer import TypingBuffer

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class TypingSimulator:
    def __init__(
        self,
        buffer: TypingBuffer,
        choices: ChoiceEngine,
        config: TypingConfig,
        rng: random.Random | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._buffer = buffer
        self._choices = choices
        self._config = config
        self._rng = rng or random.Random()
        self._sleep = sleep
        self.lines_typed = 0

    @property
    def buffer(self) -> TypingBuffer:
        return self._buffer

    async def run(self) -> None:
        while True:
            await self.step()

    async def step(self) -> None:
        """Type one random line, then maybe branch to a choice, then maybe clear."""
        await self.type_line(self._rng.choice(self._config.code_lines))

        if self._rng.random() < self._config.choice_probability:
            option = await self._choices.offer()
            await self.type_line(f"// User selected: {option.label}")

        if self._buffer.line_count() > self._config.max_lines:
            await self.clear()

    async def type_line(self, line: str) -> None:
        for char in line:
            await self._type_char(char)
            if self._rng.random() < self._config.backspace_probability:
                await self.backspace(self._rng.randint(1, self._config.max_backspace))
        await self._type_char("\n")
        self._buffer.move_to_end()
        self.lines_typed += 1

    async def backspace(self, count: int) -> None:
        """Delete up to *count* characters, one per delay; stops at the line start."""
        for _ in range(count):
            self._buffer.delete_before_cursor()
            await self._sleep(self._delay(self._config.backspace_delay_ms))

    async def clear(self) -> None:
        """Two-phase clear: show the placeholder, pause, empty the buffer, pause."""
        logger.debug("Clearing typing buffer after %d line(s).", self._buffer.line_count())
        self._buffer.replace(self._config.clear_placeholder)
        await self._sleep(self._config.clear_pause_seconds)
        self._buffer.replace("")
        await self._sleep(self._config.clear_pause_seconds)

    async def _type_char(self, char: str) -> None:
        self._buffer.insert(char)
        await self._sleep(self._delay(self._config.char_delay_ms))

    def _delay(self, window_ms: tuple[float, float]) -> float:
        low, high = window_ms
        return self._rng.uniform(low, high) / 1000.0
