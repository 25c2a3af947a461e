from __future__ import annotations

import pandas as pd
import pytest

from trendsniper.core.errors import LimitExceededError, NotFoundError
from trendsniper.services import discovery
from trendsniper.services.alerts import DEMO_USER_ID, AlertsService
from trendsniper.services.charts import ChartService
from trendsniper.services.discovery import DiscoveryService
from trendsniper.services.models import (
    AlertCategory,
    AlertStatus,
    AlertType,
    DiscoveryFeature,
    DiscoveryQuery,
    Pairing,
    TimeFrame,
)
from trendsniper.services.options import OptionsService, OptionsType
from trendsniper.services.watchlists import WatchlistService


def _alerts() -> AlertsService:
    return AlertsService(watchlist_limit=3, discovery_limit=5, indicator_limit=3, latency_ms=0)


async def _watchlist_alert(service: AlertsService, user_id: str, watchlist_id: str = "watch1"):
    return await service.create_alert(
        user_id=user_id,
        category=AlertCategory.WATCHLIST,
        alert_type=AlertType.PRICE_UP,
        timeframe=TimeFrame.H12,
        pairing=Pairing.USD,
        threshold=50000.0,
        coin_id="bitcoin",
        coin_name="Bitcoin",
        watchlist_id=watchlist_id,
        watchlist_name="Top Caps",
    )


@pytest.mark.asyncio
async def test_demo_user_is_seeded() -> None:
    service = _alerts()
    summary = await service.get_summary(DEMO_USER_ID)
    assert summary.total == 3
    assert summary.watchlist == 2
    assert summary.discovery == 1
    assert summary.active == 2
    assert summary.remaining_discovery == 4


@pytest.mark.asyncio
async def test_watchlist_limit_is_per_watchlist() -> None:
    service = _alerts()
    for _ in range(3):
        await _watchlist_alert(service, "u1")
    with pytest.raises(LimitExceededError):
        await _watchlist_alert(service, "u1")
    other = await _watchlist_alert(service, "u1", "watch2")
    assert other.status == AlertStatus.ACTIVE


@pytest.mark.asyncio
async def test_indicator_limit() -> None:
    service = _alerts()
    with pytest.raises(LimitExceededError):
        await service.create_alert(
            user_id="u1",
            category=AlertCategory.DISCOVERY,
            alert_type=AlertType.MARKET_TRANSITION,
            timeframe=TimeFrame.D1,
            pairing=Pairing.USD,
            indicators=["RSI", "MACD", "Bollinger", "Stochastic"],
        )


@pytest.mark.asyncio
async def test_delete_missing_alert_returns_false() -> None:
    service = _alerts()
    assert await service.delete_alert("alert_999") is False
    created = await _watchlist_alert(service, "u1")
    assert await service.delete_alert(created.id) is True
    assert await service.get_alert(created.id) is None


@pytest.mark.asyncio
async def test_toggle_alert_flips_status() -> None:
    service = _alerts()
    created = await _watchlist_alert(service, "u1")
    paused = await service.toggle_alert(created.id)
    assert paused is not None and paused.status == AlertStatus.PAUSED
    resumed = await service.toggle_alert(created.id)
    assert resumed is not None and resumed.active
    assert await service.toggle_alert("alert_999") is None


@pytest.mark.asyncio
async def test_watchlist_alerts_filter_by_watchlist() -> None:
    service = _alerts()
    await _watchlist_alert(service, "u1", "watch1")
    await _watchlist_alert(service, "u1", "watch2")
    assert len(await service.get_watchlist_alerts("u1")) == 2
    only = await service.get_watchlist_alerts("u1", "watch2")
    assert [a.watchlist_id for a in only] == ["watch2"]


@pytest.mark.asyncio
async def test_watchlist_crud() -> None:
    service = WatchlistService(latency_ms=0, max_watchlists=3)
    lists = await service.get_watchlists("u1")
    assert [w.id for w in lists] == ["watch1", "watch2"]

    created = await service.create_watchlist("u1", "  Moonshots ")
    assert created.name == "Moonshots"
    with pytest.raises(LimitExceededError):
        await service.create_watchlist("u1", "One too many")

    updated = await service.add_coin("u1", created.id, "dogecoin")
    await service.add_coin("u1", created.id, "dogecoin")
    assert updated.coin_ids == ["dogecoin"]
    await service.remove_coin("u1", created.id, "dogecoin")
    assert (await service.get_watchlist("u1", created.id)).coin_ids == []

    assert await service.delete_watchlist("u1", created.id) is True
    assert await service.delete_watchlist("u1", created.id) is False
    with pytest.raises(NotFoundError):
        await service.add_coin("u1", created.id, "bitcoin")


@pytest.mark.asyncio
async def test_watchlists_are_per_owner() -> None:
    service = WatchlistService(latency_ms=0)
    await service.delete_watchlist("u1", "watch1")
    assert await service.get_watchlist("u1", "watch1") is None
    assert await service.get_watchlist("u2", "watch1") is not None


@pytest.mark.asyncio
async def test_options_lists() -> None:
    service = OptionsService(latency_ms=0)
    transitions = await service.get_options(OptionsType.MARKET_TRANSITIONS)
    assert "Bullish to Bearish" in transitions
    assert len(await service.get_options("unknown")) == 5


@pytest.mark.asyncio
async def test_discovery_strength_sorting_and_paging() -> None:
    service = DiscoveryService(latency_ms=0, seed=7)
    query = DiscoveryQuery(feature=DiscoveryFeature.STRENGTH, strength="strongest", limit=5)
    first = await service.get_results(query)
    changes = [item.change_pct for item in first.items]
    assert changes == sorted(changes, reverse=True)
    assert first.total == 25
    assert first.has_next and not first.has_prev

    query.page = 99
    last = await service.get_results(query)
    assert last.page == first.total_pages - 1
    assert not last.has_next

    weakest = await service.get_results(DiscoveryQuery(feature=DiscoveryFeature.STRENGTH, strength="weakest", limit=5))
    assert weakest.items[0].change_pct == pytest.approx(service.table(TimeFrame.D1, Pairing.USD)["change_pct"].min())


@pytest.mark.asyncio
async def test_discovery_market_cap_and_pairing() -> None:
    service = DiscoveryService(latency_ms=0, seed=7)
    page = await service.get_results(DiscoveryQuery(feature=DiscoveryFeature.MARKET_CAP, limit=3))
    caps = [item.market_cap for item in page.items]
    assert caps == sorted(caps, reverse=True)

    btc_usd = await service.get_metrics("bitcoin", TimeFrame.D1, Pairing.USD)
    btc_btc = await service.get_metrics("bitcoin", TimeFrame.D1, Pairing.BTC)
    assert btc_usd is not None and btc_usd.price > 1000
    assert btc_btc is not None and btc_btc.price == pytest.approx(1.0)
    assert await service.get_metrics("nope", TimeFrame.D1, Pairing.USD) is None


def test_discovery_refresh_changes_prices() -> None:
    service = DiscoveryService(latency_ms=0, seed=1)
    before = service.table(TimeFrame.H1, Pairing.USD)["price"].tolist()
    service.refresh()
    after = service.table(TimeFrame.H1, Pairing.USD)["price"].tolist()
    assert before != after


def test_refresh_mid_read_does_not_mix_snapshots(monkeypatch) -> None:
    service = DiscoveryService(latency_ms=0, seed=4)
    old = service.market
    expected = service.table(TimeFrame.D1, Pairing.USD)
    real_ema = discovery.ema
    calls = []

    def ema_then_refresh(*args, **kwargs):
        if not calls:
            service.refresh()
        calls.append(1)
        return real_ema(*args, **kwargs)

    monkeypatch.setattr(discovery, "ema", ema_then_refresh)
    during = service.table(TimeFrame.D1, Pairing.USD)
    assert service.market is not old
    pd.testing.assert_frame_equal(during, expected)


@pytest.mark.asyncio
async def test_chart_is_png() -> None:
    png = await ChartService(seed=3).render_chart("Bitcoin", Pairing.USD, TimeFrame.D1)
    assert png.startswith(b"\x89PNG\r\n\x1a\n")
