from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

import numpy as np
import pandas as pd

from trendsniper.core.ta import ema, random_walk, rsi, sma
from trendsniper.services.coin_search import COINS
from trendsniper.services.mock import simulate_latency
from trendsniper.services.models import (
    Coin,
    CoinMetrics,
    DiscoveryFeature,
    DiscoveryPage,
    DiscoveryQuery,
    Pairing,
    TimeFrame,
    utcnow,
)

logger = logging.getLogger(__name__)

# one bar per hour
_BARS = 400
_LOOKBACK = {
    TimeFrame.H1: 1,
    TimeFrame.H4: 4,
    TimeFrame.H6: 6,
    TimeFrame.H12: 12,
    TimeFrame.D1: 24,
    TimeFrame.W1: 168,
    TimeFrame.M1: 360,
}

_BASE_PRICES = {
    "bitcoin": 68000.0,
    "ethereum": 3400.0,
    "tether": 1.0,
    "binancecoin": 580.0,
    "solana": 150.0,
    "ripple": 0.55,
    "usd-coin": 1.0,
    "cardano": 0.45,
    "dogecoin": 0.15,
    "tron": 0.12,
}
_STABLES = {"tether", "usd-coin"}
_QUOTE_IDS = {Pairing.BTC: "bitcoin", Pairing.ETH: "ethereum"}

INDICATOR_COLUMNS = {
    "Trend Score": "trend_score",
    "RSI": "rsi",
    "Price vs Trend": "price_vs_trend",
    "Volume vs Trend": "volume_vs_trend",
}

STRENGTH_CHOICES = ("strongest", "weakest")
SENTIMENT_CHOICES = ("bullish_to_bearish", "bearish_to_bullish")


@dataclass(frozen=True)
class MarketSnapshot:
    closes: pd.DataFrame
    volumes: pd.DataFrame
    supply: dict[str, float]
    refreshed_at: datetime


class DiscoveryService:
    def __init__(self, latency_ms: int = 300, seed: int | None = None, coins: tuple[Coin, ...] = COINS) -> None:
        self.latency_ms = latency_ms
        self._coins = list(coins)
        self._rng = np.random.default_rng(seed)
        self.market: MarketSnapshot = self._generate()

    def refresh(self) -> None:
        """Re-randomize the market. Called by the scheduler, possibly off the event loop.

        Readers take ``self.market`` once, so the new snapshot is swapped in with a single assignment.
        """
        self.market = self._generate()
        logger.info("discovery_refreshed", extra={"event": "discovery_refreshed", "count": len(self._coins)})

    def _generate(self) -> MarketSnapshot:
        closes: dict[str, pd.Series] = {}
        volumes: dict[str, pd.Series] = {}
        supply: dict[str, float] = {}
        for coin in self._coins:
            start = _BASE_PRICES.get(coin.id) or float(self._rng.uniform(0.5, 60.0))
            volatility = 0.0005 if coin.id in _STABLES else 0.012
            closes[coin.id] = random_walk(self._rng, start, _BARS, volatility)
            market_cap = 1.3e12 / max(coin.rank, 1) ** 1.4
            supply[coin.id] = market_cap / start
            mean_volume = market_cap * 0.002
            volumes[coin.id] = pd.Series(self._rng.lognormal(np.log(mean_volume), 0.45, size=_BARS))
        return MarketSnapshot(pd.DataFrame(closes), pd.DataFrame(volumes), supply, utcnow())

    def table(self, timeframe: TimeFrame, pairing: Pairing) -> pd.DataFrame:
        market = self.market
        lookback = _LOOKBACK[timeframe]
        quote = market.closes[_QUOTE_IDS[pairing]] if pairing in _QUOTE_IDS else None
        rows = []
        for coin in self._coins:
            usd_close = market.closes[coin.id]
            close = usd_close / quote if quote is not None else usd_close
            volume = market.volumes[coin.id]
            price = float(close.iloc[-1])
            trend = float(ema(close, 50).iloc[-1])
            volume_trend = float(sma(volume, 30).iloc[-1])
            rsi_value = float(rsi(close).fillna(50.0).iloc[-1])
            price_vs_trend = (price / trend - 1.0) * 100.0
            rows.append(
                {
                    "coin_id": coin.id,
                    "name": coin.name,
                    "symbol": coin.symbol,
                    "price": price,
                    "change_pct": (price / float(close.iloc[-1 - lookback]) - 1.0) * 100.0,
                    "volume": float(volume.iloc[-1]),
                    "market_cap": float(usd_close.iloc[-1]) * market.supply[coin.id],
                    "trend_score": float(np.clip(price_vs_trend * 8.0 + (rsi_value - 50.0), -100.0, 100.0)),
                    "rsi": rsi_value,
                    "price_vs_trend": price_vs_trend,
                    "volume_vs_trend": (float(volume.iloc[-1]) / volume_trend - 1.0) * 100.0,
                }
            )
        return pd.DataFrame(rows)

    def _select(self, df: pd.DataFrame, query: DiscoveryQuery) -> pd.DataFrame:
        feature = query.feature
        if feature == DiscoveryFeature.STRENGTH:
            return df.sort_values("change_pct", ascending=query.strength == "weakest")
        if feature == DiscoveryFeature.AVERAGE:
            return df.sort_values(query.indicator or "trend_score", ascending=False)
        if feature == DiscoveryFeature.SIGNALS:
            if query.sentiment == "bullish_to_bearish":
                df = df[(df["trend_score"] > 0) & (df["change_pct"] < 0)]
            else:
                df = df[(df["trend_score"] < 0) & (df["change_pct"] > 0)]
            column = query.indicator or "trend_score"
            return df.reindex(df[column].abs().sort_values(ascending=False).index)
        if feature == DiscoveryFeature.DIVERGENCES:
            return df.reindex(df["volume_vs_trend"].abs().sort_values(ascending=False).index)
        if feature == DiscoveryFeature.MARKET_CAP:
            return df.sort_values("market_cap", ascending=False)
        return df.sort_values("volume", ascending=False)

    async def get_results(self, query: DiscoveryQuery) -> DiscoveryPage:
        await simulate_latency(self.latency_ms)
        selected = self._select(self.table(query.timeframe, query.pairing), query)
        total = len(selected)
        limit = max(1, query.limit)
        page = min(max(0, query.page), max(0, (total - 1) // limit))
        chunk = selected.iloc[page * limit : (page + 1) * limit]
        items = [CoinMetrics(**row) for row in chunk.to_dict(orient="records")]
        return DiscoveryPage(items=items, page=page, total=total, limit=limit)

    async def get_metrics(self, coin_id: str, timeframe: TimeFrame, pairing: Pairing) -> CoinMetrics | None:
        await simulate_latency(self.latency_ms)
        df = self.table(timeframe, pairing)
        match = df[df["coin_id"] == coin_id]
        if match.empty:
            return None
        return CoinMetrics(**match.iloc[0].to_dict())
