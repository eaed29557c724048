"""Session log models for headless runs.

- ``SessionSummary``: headline numbers at the end of a session.
- ``SessionLog``: run-level audit trail with embedded config for reproducibility.
"""

from __future__ import annotations

from pydantic import BaseModel

from models.choice import ChoiceResolution
from models.config import GameConfig
from models.economy import SavedState
from models.trade import ExecutedTrade


class SessionSummary(BaseModel):
    """Valuation of the economy when the session ended."""

    run_name: str
    cash: float
    stock_value: float
    net_worth: float
    exchange_rate: float
    reference_equivalent: float
    total_trades: int
    total_choices: int


class SessionLog(BaseModel):
    """Run-level log.

    ``run_name`` is derived from the configuration file path by the CLI.
    """

    run_name: str
    config: GameConfig
    trades: list[ExecutedTrade] = []
    choices: list[ChoiceResolution] = []
    errors: list[str] = []
    final_state: SavedState | None = None
