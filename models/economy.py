"""Economy state models: cash, stock positions and the persisted save record."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class Position(BaseModel):
    """One tradable symbol: current price and number of shares owned."""

    symbol: str = Field(min_length=1)
    price: float = Field(gt=0)
    owned: int = Field(default=0, ge=0)


def check_unique_symbols(stocks: list[Position]) -> None:
    """Raise ``ValueError`` if any symbol appears more than once."""
    symbols = [p.symbol for p in stocks]
    duplicates = sorted({s for s in symbols if symbols.count(s) > 1})
    if duplicates:
        raise ValueError(f"Duplicate stock symbols: {', '.join(duplicates)}.")


class SavedState(BaseModel):
    """On-disk layout of a save: ``{"cash": ..., "stocks": [...]}``.

    There is no schema version field; compatibility is managed by the
    storage key alone.  The basket must be non-empty with unique symbols.
    """

    cash: float = Field(ge=0)
    stocks: list[Position] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_basket(self) -> SavedState:
        check_unique_symbols(self.stocks)
        return self


class EconomyState(BaseModel):
    """Cash, holdings and the reference exchange rate for one game.

    Owned by the orchestrator and mutated in place by the economy clock, the
    market and the choice engine.  ``exchange_rate`` is never persisted; it is
    refreshed from the price feed on every boot.
    """

    cash: float = Field(ge=0)
    stocks: list[Position]
    exchange_rate: float = Field(gt=0)

    def position(self, symbol: str) -> Position:
        """Return the position for *symbol*.

        Raises ``KeyError`` if the symbol is not part of the basket.
        """
        for stock in self.stocks:
            if stock.symbol == symbol:
                return stock
        raise KeyError(f"Unknown symbol '{symbol}'.")

    def credit(self, amount: float) -> None:
        if amount < 0:
            raise ValueError(f"Credit amount must be non-negative, got {amount}.")
        self.cash += amount

    @property
    def symbols(self) -> list[str]:
        return [s.symbol for s in self.stocks]

    @property
    def stock_value(self) -> float:
        """Market value of all holdings at current prices."""
        return sum(s.owned * s.price for s in self.stocks)

    @property
    def net_worth(self) -> float:
        return self.cash + self.stock_value

    @property
    def reference_equivalent(self) -> float:
        """Net worth expressed in the reference asset (e.g. BTC)."""
        return self.net_worth / self.exchange_rate

    def to_saved(self) -> SavedState:
        return SavedState(
            cash=self.cash,
            stocks=[s.model_copy() for s in self.stocks],
        )

    @classmethod
    def from_saved(cls, saved: SavedState, exchange_rate: float) -> EconomyState:
        return cls(
            cash=saved.cash,
            stocks=[s.model_copy() for s in saved.stocks],
            exchange_rate=exchange_rate,
        )
