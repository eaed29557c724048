"""Random-walk market and one-share buy/sell execution.

Prices follow an independent multiplicative random walk per symbol, clamped
to a floor.  Trades always execute at the price current at the moment of the
call, which may differ from whatever a view last rendered.  Rejected trades
(insufficient cash, nothing to sell) are silent no-ops that return ``None``.
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from typing import Callable

from models.config import MarketConfig
from models.economy import EconomyState
from models.trade import ExecutedTrade

logger = logging.getLogger(__name__)


class MarketSimulator:
    """Owns price drift and trade execution against a shared ``EconomyState``."""

    def __init__(
        self,
        state: EconomyState,
        config: MarketConfig,
        on_change: Callable[[str], None],
        rng: random.Random | None = None,
    ) -> None:
        self._state = state
        self._config = config
        self._on_change = on_change
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Price drift
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Perturb every price by an independent draw in ``[-volatility, +volatility]``."""
        vol = self._config.volatility
        for stock in self._state.stocks:
            drift = self._rng.uniform(-vol, vol)
            stock.price = max(self._config.price_floor, stock.price * (1 + drift))
        logger.debug(
            "Market tick: %s",
            ", ".join(f"{s.symbol}={s.price:.2f}" for s in self._state.stocks),
        )
        self._on_change("market_tick")

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self._config.period_seconds)
            self.tick()

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    def buy(self, symbol: str) -> ExecutedTrade | None:
        """Buy one share of *symbol* if cash covers the current price.

        Raises ``KeyError`` for a symbol outside the basket.
        """
        stock = self._state.position(symbol)
        price = stock.price
        if self._state.cash < price:
            logger.debug("Buy %s rejected: cash %.2f < price %.2f", symbol, self._state.cash, price)
            return None

        self._state.cash -= price
        stock.owned += 1
        return self._record(symbol, "buy", price, stock.owned)

    def sell(self, symbol: str) -> ExecutedTrade | None:
        """Sell one share of *symbol* if any is held."""
        stock = self._state.position(symbol)
        if stock.owned <= 0:
            logger.debug("Sell %s rejected: nothing held.", symbol)
            return None

        price = stock.price
        self._state.cash += price
        stock.owned -= 1
        return self._record(symbol, "sell", price, stock.owned)

    def _record(self, symbol: str, side: str, price: float, owned_after: int) -> ExecutedTrade:
        trade = ExecutedTrade(
            trade_id=uuid.uuid4().hex[:12],
            symbol=symbol,
            side=side,
            price=price,
            cash_after=self._state.cash,
            owned_after=owned_after,
        )
        logger.info(
            "%s 1 %s @ $%.2f (cash $%.2f, owned %d)",
            side.capitalize(),
            symbol,
            price,
            trade.cash_after,
            owned_after,
        )
        self._on_change("trade")
        return trade
