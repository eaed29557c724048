"""Data models for the idle coding game.

The simulation engine, the CLI and any view layer import from models.
"""

from models.choice import ChoiceOption, ChoicePrompt, ChoiceResolution
from models.config import (
    ChoiceConfig,
    EconomyConfig,
    GameConfig,
    MarketConfig,
    PersistenceConfig,
    PriceFeedConfig,
    TypingConfig,
)
from models.economy import EconomyState, Position, SavedState
from models.log import SessionLog, SessionSummary
from models.trade import ExecutedTrade

__all__ = [
    # choice
    "ChoiceOption",
    "ChoicePrompt",
    "ChoiceResolution",
    # config
    "ChoiceConfig",
    "EconomyConfig",
    "GameConfig",
    "MarketConfig",
    "PersistenceConfig",
    "PriceFeedConfig",
    "TypingConfig",
    # economy
    "EconomyState",
    "Position",
    "SavedState",
    # log
    "SessionLog",
    "SessionSummary",
    # trade
    "ExecutedTrade",
]
