"""
Profit calculation for queued trades.

Profit is a linear function of the price delta, the traded volume and a fixed
contract size. Sell trades take the opposite sign.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.enums import Side

if TYPE_CHECKING:
    from data.schema import TradeRecord


CONTRACT_SIZE = 100_000.0


def calculate_profit(close: float, open: float, volume: float, side: Side | str) -> float:
    """
    Calculate the signed profit of a closed trade.

    Args:
        close: Close price
        open: Open price
        volume: Traded volume in lots
        side: ``buy`` or ``sell``

    Returns:
        ``(close - open) * volume * CONTRACT_SIZE``, negated for sells
    """
    profit = (close - open) * volume * CONTRACT_SIZE
    if Side(side) is Side.SELL:
        profit = -profit
    return profit


def trade_profit(trade: "TradeRecord") -> float:
    """Profit of a queued trade record."""
    return calculate_profit(trade.close_price, trade.open_price, trade.volume, trade.side)
