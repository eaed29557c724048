"""Trade execution models."""

from typing import Literal

from pydantic import BaseModel


class ExecutedTrade(BaseModel):
    """Single executed one-share fill, at the price current when it ran."""

    trade_id: str
    symbol: str
    side: Literal["buy", "sell"]
    price: float
    cash_after: float
    owned_after: int
