"""Game configuration models, loaded from YAML.

These live in ``models/`` because they are shared data contracts used by the
clocks, the market, the typing animation and the CLI entrypoint.  Every field
has a default, so ``GameConfig()`` is a playable configuration and a YAML file
only needs to override what differs.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

from models.choice import ChoiceOption
from models.economy import Position, check_unique_symbols


DEFAULT_STOCKS: list[tuple[str, float]] = [
    ("NVDA", 120.0),
    ("TSLA", 350.0),
    ("AAPL", 220.0),
    ("MSFT", 420.0),
    ("GOOGL", 150.0),
    ("AMZN", 180.0),
    ("META", 500.0),
    ("NFLX", 650.0),
]

DEFAULT_CODE_LINES: list[str] = [
    'const greeting = "Hello, World!";',
    "function add(a, b) {",
    "  return a + b;",
    "}",
    "let sum = add(5, 10);",
    "console.log(sum);",
    "if (sum > 10) {",
    '  console.log("Large");',
    "} else {",
    '  console.log("Small");',
    "}",
    "for (let i = 0; i < 5; i++) {",
    "  console.log(i);",
    "}",
    "class ApiClient {",
    "  constructor(baseUrl) {",
    "    this.baseUrl = baseUrl;",
    "  }",
    "  async fetch(endpoint) {",
    "    const res = await fetch(this.baseUrl + endpoint);",
    "    return res.json();",
    "  }",
    "}",
]

DEFAULT_CATALOG: list[tuple[str, float]] = [
    ("refactor: optimize-loop", 150.0),
    ("feat: add-caching-layer", 300.0),
    ("fix: handle-edge-case", 200.0),
    ("chore: update-dependencies", 100.0),
    ("test: implement-unit-tests", 250.0),
]


class EconomyConfig(BaseModel):
    """Passive income accrual."""

    initial_cash: float = Field(
        default=10_000.0,
        ge=0,
        description="Starting cash balance for a fresh game.",
    )
    increment: float = Field(
        default=13.75,
        ge=0,
        description="Cash added on every economy tick.",
    )
    period_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between economy ticks.",
    )


class MarketConfig(BaseModel):
    """Random-walk market for the fixed stock basket."""

    period_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Seconds between market ticks.",
    )
    volatility: float = Field(
        default=0.01,
        ge=0,
        lt=1,
        description="Half-width of the uniform multiplicative perturbation (0.01 = +/-1%).",
    )
    price_floor: float = Field(
        default=1.0,
        gt=0,
        description="Minimum price a stock can drift down to.",
    )
    stocks: list[Position] = Field(
        default_factory=lambda: [
            Position(symbol=symbol, price=price) for symbol, price in DEFAULT_STOCKS
        ],
        min_length=1,
        description="Tradable symbols with their starting prices.",
    )

    @model_validator(mode="after")
    def _check_unique_symbols(self) -> MarketConfig:
        check_unique_symbols(self.stocks)
        return self


class TypingConfig(BaseModel):
    """Timing and probabilities for the code-typing animation.

    Delays are in milliseconds, the clear pause in seconds.
    """

    char_delay_ms: tuple[float, float] = (30.0, 130.0)
    backspace_probability: float = Field(default=0.04, ge=0, le=1)
    max_backspace: int = Field(default=3, ge=1)
    backspace_delay_ms: tuple[float, float] = (40.0, 140.0)
    choice_probability: float = Field(default=0.15, ge=0, le=1)
    max_lines: int = Field(
        default=50,
        ge=1,
        description="Buffer is cleared once its line count exceeds this.",
    )
    clear_pause_seconds: float = Field(default=1.0, ge=0)
    clear_placeholder: str = "// Clearing buffer...\n"
    code_lines: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CODE_LINES),
        min_length=1,
    )

    @model_validator(mode="after")
    def _check_delay_windows(self) -> TypingConfig:
        for name in ("char_delay_ms", "backspace_delay_ms"):
            low, high = getattr(self, name)
            if low < 0 or high < low:
                raise ValueError(f"{name} must satisfy 0 <= min <= max, got ({low}, {high}).")
        return self


class ChoiceConfig(BaseModel):
    """Reward catalog offered at choice branches."""

    catalog: list[ChoiceOption] = Field(
        default_factory=lambda: [
            ChoiceOption(label=label, reward=reward) for label, reward in DEFAULT_CATALOG
        ],
    )
    present_count: int = Field(
        default=3,
        ge=1,
        description="Number of distinct options presented per choice branch.",
    )

    @model_validator(mode="after")
    def _check_catalog(self) -> ChoiceConfig:
        if len(self.catalog) < self.present_count:
            raise ValueError(
                f"Catalog has {len(self.catalog)} option(s), "
                f"cannot present {self.present_count}."
            )
        labels = [o.label for o in self.catalog]
        if len(set(labels)) != len(labels):
            raise ValueError("Catalog labels must be unique.")
        return self


class PersistenceConfig(BaseModel):
    """Where and under which key the game is saved."""

    save_key: str = Field(
        default="codex-save-v3",
        min_length=1,
        description="Versioned storage key. Changing it orphans older saves.",
    )
    storage_dir: str = Field(
        default=".codex_idle",
        description="Directory used by the file-backed key-value store.",
    )


class PriceFeedConfig(BaseModel):
    """External reference price (BTC/USD) used for the derived equivalent."""

    url: str = "https://api.coingecko.com/api/v3/simple/price?ids=bitcoin&vs_currencies=usd"
    asset_id: str = "bitcoin"
    vs_currency: str = "usd"
    default_price: float = Field(default=100_000.0, gt=0)
    timeout_seconds: float = Field(default=10.0, gt=0)


class GameConfig(BaseModel):
    """Top-level configuration for a game session, loaded from YAML."""

    economy: EconomyConfig = Field(default_factory=EconomyConfig)
    market: MarketConfig = Field(default_factory=MarketConfig)
    typing: TypingConfig = Field(default_factory=TypingConfig)
    choices: ChoiceConfig = Field(default_factory=ChoiceConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    price_feed: PriceFeedConfig = Field(default_factory=PriceFeedConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> GameConfig:
        """Load and validate a ``GameConfig`` from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.  An empty
        file yields the default configuration.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
            )

        return cls(**raw)
