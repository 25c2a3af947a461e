from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

from trendsniper.core.errors import CircuitOpenError, UpstreamError
from trendsniper.services.models import Coin, SearchResult

logger = logging.getLogger(__name__)

SELECT_PREFIX = "coinsearch_select_"
PREV_PREFIX = "coinsearch_prev_"
NEXT_PREFIX = "coinsearch_next_"
RETRY = "coinsearch_retry"


class SearchBackend(Protocol):
    async def search(self, query: str) -> list[SearchResult]: ...


@dataclass
class CircuitState:
    failures: int = 0
    open_until: float = 0.0


@dataclass(frozen=True)
class SearchOutcome:
    query: str
    results: list[SearchResult] = field(default_factory=list)
    selected: Coin | None = None

    @property
    def auto_selected(self) -> bool:
        return self.selected is not None


class CoinSearch:
    """Free-text coin lookup guarded by a timeout and a consecutive-failure breaker.

    One instance is shared by every conversation, so the breaker state is
    global: three failed searches from any chats open it for everyone.
    """

    def __init__(
        self,
        backend: SearchBackend,
        timeout: float = 5.0,
        breaker_threshold: int = 3,
        breaker_cooldown: float = 30.0,
        confidence_threshold: float = 0.5,
        page_size: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.backend = backend
        self.timeout = timeout
        self.breaker_threshold = breaker_threshold
        self.breaker_cooldown = breaker_cooldown
        self.confidence_threshold = confidence_threshold
        self.page_size = page_size
        self.clock = clock
        self.state = CircuitState()

    def is_open(self) -> bool:
        return self.state.open_until > self.clock()

    def _record_failure(self) -> None:
        self.state.failures += 1
        if self.state.failures >= self.breaker_threshold:
            self.state.open_until = self.clock() + self.breaker_cooldown
            logger.warning("search_breaker_opened", extra={"event": "search_breaker_opened", "count": self.state.failures})

    def _record_success(self) -> None:
        self.state = CircuitState()

    async def process_search(self, query: str) -> SearchOutcome:
        if self.is_open():
            raise CircuitOpenError("Coin search is temporarily unavailable.")
        if self.state.open_until:
            # cool-down elapsed
            self._record_success()

        started = self.clock()
        try:
            results = await asyncio.wait_for(self.backend.search(query), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            self._record_failure()
            logger.warning("search_timeout", extra={"event": "search_timeout", "error": query})
            raise UpstreamError("Coin search timed out.") from exc
        except Exception as exc:  # noqa: BLE001
            self._record_failure()
            logger.warning("search_failed", extra={"event": "search_failed", "error": str(exc)})
            raise UpstreamError("Coin search failed.") from exc

        self._record_success()
        latency_ms = int((self.clock() - started) * 1000)
        logger.info("search_completed", extra={"event": "search_completed", "count": len(results), "latency_ms": latency_ms})

        if results and results[0].score >= self.confidence_threshold:
            return SearchOutcome(query=query, results=results, selected=results[0].coin)
        return SearchOutcome(query=query, results=results)
