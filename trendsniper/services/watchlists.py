from __future__ import annotations

import logging
from itertools import count

from trendsniper.core.errors import LimitExceededError, NotFoundError
from trendsniper.services.mock import simulate_latency
from trendsniper.services.models import Watchlist

logger = logging.getLogger(__name__)

_DEFAULT_WATCHLISTS = (
    ("watch1", "Top Caps", ["bitcoin", "ethereum", "solana"]),
    ("watch2", "DeFi", ["uniswap", "aave", "chainlink"]),
)


class WatchlistService:
    def __init__(self, latency_ms: int = 300, max_watchlists: int = 10) -> None:
        self.latency_ms = latency_ms
        self.max_watchlists = max_watchlists
        self._by_owner: dict[str, dict[str, Watchlist]] = {}
        self._ids = count(len(_DEFAULT_WATCHLISTS) + 1)

    def _owned(self, owner_id: str) -> dict[str, Watchlist]:
        owned = self._by_owner.get(owner_id)
        if owned is None:
            owned = {
                wid: Watchlist(id=wid, name=name, owner_id=owner_id, coin_ids=list(coins))
                for wid, name, coins in _DEFAULT_WATCHLISTS
            }
            self._by_owner[owner_id] = owned
        return owned

    def _require(self, owner_id: str, watchlist_id: str) -> Watchlist:
        watchlist = self._owned(owner_id).get(watchlist_id)
        if watchlist is None:
            raise NotFoundError(f"Watchlist {watchlist_id} not found.")
        return watchlist

    async def get_watchlists(self, owner_id: str) -> list[Watchlist]:
        await simulate_latency(self.latency_ms)
        return list(self._owned(owner_id).values())

    async def get_watchlist(self, owner_id: str, watchlist_id: str) -> Watchlist | None:
        await simulate_latency(self.latency_ms)
        return self._owned(owner_id).get(watchlist_id)

    async def create_watchlist(self, owner_id: str, name: str) -> Watchlist:
        owned = self._owned(owner_id)
        if len(owned) >= self.max_watchlists:
            raise LimitExceededError(f"Maximum {self.max_watchlists} watchlists reached.")
        await simulate_latency(self.latency_ms)
        watchlist = Watchlist(id=f"watch{next(self._ids)}", name=name.strip(), owner_id=owner_id)
        owned[watchlist.id] = watchlist
        logger.info("watchlist_created", extra={"event": "watchlist_created", "user_id": owner_id})
        return watchlist

    async def delete_watchlist(self, owner_id: str, watchlist_id: str) -> bool:
        await simulate_latency(self.latency_ms)
        removed = self._owned(owner_id).pop(watchlist_id, None)
        if removed is not None:
            logger.info("watchlist_deleted", extra={"event": "watchlist_deleted", "user_id": owner_id})
        return removed is not None

    async def add_coin(self, owner_id: str, watchlist_id: str, coin_id: str) -> Watchlist:
        await simulate_latency(self.latency_ms)
        watchlist = self._require(owner_id, watchlist_id)
        if coin_id not in watchlist.coin_ids:
            watchlist.coin_ids.append(coin_id)
        return watchlist

    async def remove_coin(self, owner_id: str, watchlist_id: str, coin_id: str) -> Watchlist:
        await simulate_latency(self.latency_ms)
        watchlist = self._require(owner_id, watchlist_id)
        if coin_id in watchlist.coin_ids:
            watchlist.coin_ids.remove(coin_id)
        return watchlist
