from __future__ import annotations

from dataclasses import dataclass

from trendsniper.bot.coin_search import CoinSearch
from trendsniper.core.cache import Cache, build_cache
from trendsniper.core.config import Settings
from trendsniper.services.alerts import AlertsService
from trendsniper.services.charts import ChartService
from trendsniper.services.coin_search import CoinSearchService
from trendsniper.services.discovery import DiscoveryService
from trendsniper.services.options import OptionsService
from trendsniper.services.watchlists import WatchlistService


@dataclass
class ServiceHub:
    settings: Settings
    cache: Cache
    alerts: AlertsService
    watchlists: WatchlistService
    coins: CoinSearchService
    coin_search: CoinSearch
    discovery: DiscoveryService
    options: OptionsService
    charts: ChartService

    async def close(self) -> None:
        await self.cache.close()


def build_hub(settings: Settings, cache: Cache | None = None) -> ServiceHub:
    latency = settings.mock_latency_ms
    coins = CoinSearchService(latency_ms=latency)
    return ServiceHub(
        settings=settings,
        cache=cache or build_cache(settings.redis_url),
        alerts=AlertsService(
            watchlist_limit=settings.alerts_per_watchlist_limit,
            discovery_limit=settings.discovery_alerts_limit,
            indicator_limit=settings.indicator_selection_limit,
            latency_ms=latency,
        ),
        watchlists=WatchlistService(latency_ms=latency),
        coins=coins,
        coin_search=CoinSearch(
            coins,
            timeout=settings.search_timeout_sec,
            breaker_threshold=settings.search_breaker_threshold,
            breaker_cooldown=settings.search_breaker_cooldown_sec,
            confidence_threshold=settings.search_confidence_threshold,
            page_size=settings.search_page_size,
        ),
        discovery=DiscoveryService(latency_ms=latency),
        options=OptionsService(latency_ms=latency),
        charts=ChartService(),
    )
