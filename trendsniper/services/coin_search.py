from __future__ import annotations

import difflib
import logging

from trendsniper.core.errors import UpstreamError
from trendsniper.services.mock import simulate_latency
from trendsniper.services.models import Coin, SearchResult

logger = logging.getLogger(__name__)

COINS: tuple[Coin, ...] = (
    Coin("bitcoin", "Bitcoin", "BTC", 1),
    Coin("ethereum", "Ethereum", "ETH", 2),
    Coin("tether", "Tether", "USDT", 3),
    Coin("binancecoin", "BNB", "BNB", 4),
    Coin("solana", "Solana", "SOL", 5),
    Coin("ripple", "XRP", "XRP", 6),
    Coin("usd-coin", "USD Coin", "USDC", 7),
    Coin("cardano", "Cardano", "ADA", 8),
    Coin("dogecoin", "Dogecoin", "DOGE", 9),
    Coin("tron", "TRON", "TRX", 10),
    Coin("avalanche-2", "Avalanche", "AVAX", 11),
    Coin("chainlink", "Chainlink", "LINK", 12),
    Coin("polkadot", "Polkadot", "DOT", 13),
    Coin("bitcoin-cash", "Bitcoin Cash", "BCH", 14),
    Coin("litecoin", "Litecoin", "LTC", 15),
    Coin("near", "NEAR Protocol", "NEAR", 16),
    Coin("uniswap", "Uniswap", "UNI", 17),
    Coin("polygon", "Polygon", "POL", 18),
    Coin("internet-computer", "Internet Computer", "ICP", 19),
    Coin("ethereum-classic", "Ethereum Classic", "ETC", 20),
    Coin("aptos", "Aptos", "APT", 21),
    Coin("cosmos", "Cosmos", "ATOM", 22),
    Coin("arbitrum", "Arbitrum", "ARB", 23),
    Coin("aave", "Aave", "AAVE", 24),
    Coin("maker", "Maker", "MKR", 25),
)

EXACT_SCORE = 1.0
PREFIX_SCORE = 0.8
SUBSTRING_SCORE = 0.6
FUZZY_CUTOFF = 0.6
FUZZY_WEIGHT = 0.5


def score_coin(coin: Coin, query: str) -> float:
    q = query.strip().lower()
    if not q:
        return 0.0
    fields = (coin.id.lower(), coin.symbol.lower(), coin.name.lower())
    if q in fields:
        return EXACT_SCORE
    if any(f.startswith(q) for f in fields):
        return PREFIX_SCORE
    if any(q in f for f in fields):
        return SUBSTRING_SCORE
    ratio = max(difflib.SequenceMatcher(None, q, f).ratio() for f in fields)
    if ratio >= FUZZY_CUTOFF:
        return round(ratio * FUZZY_WEIGHT, 4)
    return 0.0


class CoinSearchService:
    def __init__(self, latency_ms: int = 300, coins: tuple[Coin, ...] = COINS) -> None:
        self.latency_ms = latency_ms
        self._coins = {c.id: c for c in coins}
        self._failures_pending = 0

    def fail_next(self, n: int = 1) -> None:
        """Make the next ``n`` searches raise, to exercise the breaker."""
        self._failures_pending = max(0, n)

    async def search(self, query: str) -> list[SearchResult]:
        await simulate_latency(self.latency_ms)
        if self._failures_pending > 0:
            self._failures_pending -= 1
            raise UpstreamError("coin search backend unavailable")
        results = [SearchResult(coin=c, score=score_coin(c, query)) for c in self._coins.values()]
        results = [r for r in results if r.score > 0]
        results.sort(key=lambda r: (-r.score, r.coin.rank))
        return results

    async def get_coin(self, coin_id: str) -> Coin | None:
        await simulate_latency(self.latency_ms)
        return self._coins.get(coin_id)
