"""Tests for the economy clock and the market.

Tests cover:
1. n economy ticks add exactly n increments, with one save request per tick
2. Buy/sell constraints, round trip and execution at the current price
3. Price floor under adversarial and random draws
4. The worked example: 10 ticks, buy NVDA, sell after drift
"""

from __future__ import annotations

import random

import pytest

from models.config import EconomyConfig, MarketConfig
from models.economy import EconomyState, Position
from simulation.economy_clock import EconomyClock
from simulation.market import MarketSimulator


class _EdgeRandom(random.Random):
    """Always draws the lower (or upper) edge of a uniform range."""

    def __init__(self, upper: bool = False) -> None:
        super().__init__(0)
        self._upper = upper

    def uniform(self, a, b):
        return b if self._upper else a


@pytest.fixture
def changes() -> list[str]:
    return []


@pytest.fixture
def state() -> EconomyState:
    return EconomyState(
        cash=10_000.0,
        stocks=[
            Position(symbol="NVDA", price=120.0),
            Position(symbol="TSLA", price=350.0),
        ],
        exchange_rate=100_000.0,
    )


@pytest.fixture
def market(state, changes) -> MarketSimulator:
    return MarketSimulator(state, MarketConfig(), changes.append, rng=random.Random(7))


class TestEconomyClock:
    @pytest.mark.parametrize("n", [0, 1, 10, 250])
    def test_n_ticks(self, state, changes, n):
        clock = EconomyClock(state, EconomyConfig(), changes.append)
        for _ in range(n):
            clock.tick()
        assert state.cash == 10_000.0 + n * 13.75
        assert changes == ["economy_tick"] * n
        assert clock.ticks == n

    def test_cash_strictly_increasing(self, state, changes):
        clock = EconomyClock(state, EconomyConfig(), changes.append)
        previous = state.cash
        for _ in range(20):
            clock.tick()
            assert state.cash > previous
            previous = state.cash


class TestTrading:
    def test_buy(self, state, market, changes):
        trade = market.buy("NVDA")
        assert trade is not None
        assert trade.side == "buy"
        assert trade.price == 120.0
        assert trade.owned_after == 1
        assert state.cash == 9_880.0
        assert state.position("NVDA").owned == 1
        assert changes == ["trade"]

    def test_buy_with_insufficient_cash_is_noop(self, state, market, changes):
        state.cash = 119.99
        assert market.buy("NVDA") is None
        assert state.cash == 119.99
        assert state.position("NVDA").owned == 0
        assert changes == []

    def test_buy_with_exact_cash(self, state, market):
        state.cash = 120.0
        assert market.buy("NVDA") is not None
        assert state.cash == 0.0

    def test_sell_with_nothing_owned_is_noop(self, state, market, changes):
        assert market.sell("TSLA") is None
        assert state.cash == 10_000.0
        assert state.position("TSLA").owned == 0
        assert changes == []

    def test_round_trip(self, state, market):
        before = (state.cash, state.position("TSLA").owned)
        market.buy("TSLA")
        market.sell("TSLA")
        assert (state.cash, state.position("TSLA").owned) == before

    def test_trade_uses_current_price(self, state, market):
        market.buy("NVDA")
        state.position("NVDA").price = 200.0
        trade = market.sell("NVDA")
        assert trade.price == 200.0
        assert state.cash == 10_000.0 - 120.0 + 200.0

    def test_unknown_symbol_raises(self, market):
        with pytest.raises(KeyError):
            market.buy("IBM")
        with pytest.raises(KeyError):
            market.sell("IBM")

    def test_cash_never_negative(self, state, market):
        state.cash = 500.0
        for _ in range(10):
            market.buy("TSLA")
            market.buy("NVDA")
        assert state.cash >= 0
        assert state.position("TSLA").owned == 1
        assert state.position("NVDA").owned == 1


class TestMarketTick:
    def test_tick_bounded_perturbation(self, state, changes):
        up = MarketSimulator(state, MarketConfig(), changes.append, rng=_EdgeRandom(upper=True))
        up.tick()
        assert state.position("NVDA").price == pytest.approx(120.0 * 1.01)
        assert changes == ["market_tick"]

    def test_tick_within_range(self, state, market):
        market.tick()
        assert 120.0 * 0.99 <= state.position("NVDA").price <= 120.0 * 1.01
        assert 350.0 * 0.99 <= state.position("TSLA").price <= 350.0 * 1.01

    def test_floor_under_constant_downward_draws(self, state, changes):
        state.position("NVDA").price = 1.5
        down = MarketSimulator(state, MarketConfig(), changes.append, rng=_EdgeRandom())
        for _ in range(500):
            down.tick()
        assert state.position("NVDA").price == 1.0
        assert all(s.price >= 1.0 for s in state.stocks)

    @pytest.mark.parametrize("seed", range(5))
    def test_floor_with_random_draws(self, state, changes, seed):
        config = MarketConfig(volatility=0.5)
        sim = MarketSimulator(state, config, changes.append, rng=random.Random(seed))
        for _ in range(300):
            sim.tick()
            assert all(s.price >= 1.0 for s in state.stocks)

    def test_owned_quantities_untouched(self, state, market):
        market.buy("NVDA")
        market.tick()
        assert state.position("NVDA").owned == 1


def test_worked_example(state, changes):
    clock = EconomyClock(state, EconomyConfig(), changes.append)
    market = MarketSimulator(state, MarketConfig(), changes.append, rng=random.Random(1))

    for _ in range(10):
        clock.tick()
    assert state.cash == 10_137.50

    market.buy("NVDA")
    assert state.cash == 10_017.50
    assert state.position("NVDA").owned == 1

    market.tick()
    drifted = state.position("NVDA").price
    market.sell("NVDA")
    assert state.cash == pytest.approx(10_017.50 + drifted)
    assert state.position("NVDA").owned == 0
