from __future__ import annotations

import logging
from enum import Enum

from trendsniper.services.mock import simulate_latency

logger = logging.getLogger(__name__)


class OptionsType(str, Enum):
    INDICATORS = "indicators"
    ALERTS = "alerts"
    EXCHANGES = "exchanges"
    STRATEGIES = "strategies"
    MARKET_TRANSITIONS = "market_transitions"
    LEVEL_BREAKS = "level_breaks"


_OPTIONS: dict[OptionsType, tuple[str, ...]] = {
    OptionsType.INDICATORS: ("RSI", "MACD", "Bollinger", "Moving Avg", "Stochastic", "Ichimoku"),
    OptionsType.ALERTS: ("Price Alert", "Volume Alert", "Pattern Alert", "Indicator Alert", "News Alert"),
    OptionsType.EXCHANGES: ("Binance", "Coinbase", "Kraken", "Kucoin", "Bitfinex", "Huobi"),
    OptionsType.STRATEGIES: ("Trend Following", "Mean Reversion", "Breakout", "Range Trading", "Grid Trading"),
    OptionsType.MARKET_TRANSITIONS: (
        "Bullish to Bearish",
        "Bearish to Bullish",
        "Neutral to Bullish",
        "Neutral to Bearish",
    ),
    OptionsType.LEVEL_BREAKS: ("Support Break", "Resistance Break", "Support Bounce", "Resistance Rejection"),
}

_DEFAULT_OPTIONS = ("Option 1", "Option 2", "Option 3", "Option 4", "Option 5")


class OptionsService:
    def __init__(self, latency_ms: int = 300) -> None:
        self.latency_ms = latency_ms

    async def get_options(self, options_type: OptionsType | str) -> list[str]:
        await simulate_latency(self.latency_ms)
        try:
            key = OptionsType(options_type)
        except ValueError:
            logger.warning("options_unknown_type", extra={"event": "options_unknown_type", "error": str(options_type)})
            return list(_DEFAULT_OPTIONS)
        return list(_OPTIONS[key])
