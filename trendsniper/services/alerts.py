from __future__ import annotations

import logging
from dataclasses import replace
from itertools import count

from trendsniper.core.errors import LimitExceededError
from trendsniper.services.mock import simulate_latency
from trendsniper.services.models import (
    Alert,
    AlertCategory,
    AlertLimits,
    AlertsSummary,
    AlertStatus,
    AlertType,
    Pairing,
    TimeFrame,
    utcnow,
)

logger = logging.getLogger(__name__)

DEMO_USER_ID = "12345"


class AlertsService:
    def __init__(
        self,
        watchlist_limit: int,
        discovery_limit: int,
        indicator_limit: int,
        latency_ms: int = 300,
    ) -> None:
        self.watchlist_limit = watchlist_limit
        self.discovery_limit = discovery_limit
        self.indicator_limit = indicator_limit
        self.latency_ms = latency_ms
        self._alerts: dict[str, Alert] = {}
        self._ids = count(1)
        self._seed()

    def _next_id(self) -> str:
        return f"alert_{next(self._ids)}"

    def _seed(self) -> None:
        seeds = [
            Alert(
                id=self._next_id(),
                user_id=DEMO_USER_ID,
                category=AlertCategory.WATCHLIST,
                alert_type=AlertType.PRICE_UP,
                timeframe=TimeFrame.D1,
                pairing=Pairing.USD,
                threshold=75000.0,
                coin_id="bitcoin",
                coin_name="Bitcoin",
                watchlist_id="watch1",
                watchlist_name="Top Caps",
            ),
            Alert(
                id=self._next_id(),
                user_id=DEMO_USER_ID,
                category=AlertCategory.WATCHLIST,
                alert_type=AlertType.VOLUME_UP,
                timeframe=TimeFrame.H12,
                pairing=Pairing.USD,
                threshold=25.0,
                watchlist_id="watch2",
                watchlist_name="DeFi",
                status=AlertStatus.PAUSED,
            ),
            Alert(
                id=self._next_id(),
                user_id=DEMO_USER_ID,
                category=AlertCategory.DISCOVERY,
                alert_type=AlertType.RSI_OVERSOLD,
                timeframe=TimeFrame.H4,
                pairing=Pairing.BTC,
                threshold=30.0,
                indicators=["RSI"],
            ),
        ]
        for alert in seeds:
            self._alerts[alert.id] = alert

    def _count(self, user_id: str, category: AlertCategory, watchlist_id: str | None = None) -> int:
        return sum(
            1
            for a in self._alerts.values()
            if a.user_id == user_id
            and a.category == category
            and (watchlist_id is None or a.watchlist_id == watchlist_id)
        )

    async def create_alert(
        self,
        user_id: str,
        category: AlertCategory,
        alert_type: AlertType,
        timeframe: TimeFrame,
        pairing: Pairing,
        threshold: float | None = None,
        coin_id: str | None = None,
        coin_name: str | None = None,
        watchlist_id: str | None = None,
        watchlist_name: str | None = None,
        indicators: list[str] | None = None,
        variant: str | None = None,
        message: str | None = None,
    ) -> Alert:
        # Check and insert are separated by the backend round trip, so two
        # concurrent creations can both pass the check.
        if category == AlertCategory.WATCHLIST:
            used = self._count(user_id, category, watchlist_id)
            if used >= self.watchlist_limit:
                raise LimitExceededError(f"Maximum {self.watchlist_limit} alerts per watchlist reached.")
        else:
            used = self._count(user_id, category)
            if used >= self.discovery_limit:
                raise LimitExceededError(f"Maximum {self.discovery_limit} discovery alerts reached.")
        if indicators and len(indicators) > self.indicator_limit:
            raise LimitExceededError(f"Maximum {self.indicator_limit} indicators per alert.")

        await simulate_latency(self.latency_ms)

        alert = Alert(
            id=self._next_id(),
            user_id=user_id,
            category=category,
            alert_type=alert_type,
            timeframe=timeframe,
            pairing=pairing,
            threshold=threshold,
            coin_id=coin_id,
            coin_name=coin_name,
            watchlist_id=watchlist_id,
            watchlist_name=watchlist_name,
            indicators=list(indicators or []),
            variant=variant,
            message=message,
        )
        self._alerts[alert.id] = alert
        logger.info("alert_created", extra={"event": "alert_created", "user_id": user_id, "alert_id": alert.id})
        return alert

    async def get_alert(self, alert_id: str) -> Alert | None:
        await simulate_latency(self.latency_ms)
        return self._alerts.get(alert_id)

    async def get_alerts(self, user_id: str, category: AlertCategory | None = None) -> list[Alert]:
        await simulate_latency(self.latency_ms)
        alerts = [
            a for a in self._alerts.values() if a.user_id == user_id and (category is None or a.category == category)
        ]
        return sorted(alerts, key=lambda a: a.created_at)

    async def get_watchlist_alerts(self, user_id: str, watchlist_id: str | None = None) -> list[Alert]:
        alerts = await self.get_alerts(user_id, AlertCategory.WATCHLIST)
        if watchlist_id is None:
            return alerts
        return [a for a in alerts if a.watchlist_id == watchlist_id]

    async def get_discovery_alerts(self, user_id: str) -> list[Alert]:
        return await self.get_alerts(user_id, AlertCategory.DISCOVERY)

    async def delete_alert(self, alert_id: str) -> bool:
        await simulate_latency(self.latency_ms)
        removed = self._alerts.pop(alert_id, None)
        if removed is None:
            logger.warning("alert_delete_missing", extra={"event": "alert_delete_missing", "alert_id": alert_id})
            return False
        logger.info("alert_deleted", extra={"event": "alert_deleted", "user_id": removed.user_id, "alert_id": alert_id})
        return True

    async def toggle_alert(self, alert_id: str) -> Alert | None:
        alert = self._alerts.get(alert_id)
        if alert is None:
            logger.warning("alert_toggle_missing", extra={"event": "alert_toggle_missing", "alert_id": alert_id})
            return None
        status = AlertStatus.PAUSED if alert.active else AlertStatus.ACTIVE
        updated = replace(alert, status=status, updated_at=utcnow())
        self._alerts[alert_id] = updated
        await simulate_latency(self.latency_ms)
        return updated

    async def get_summary(self, user_id: str) -> AlertsSummary:
        alerts = await self.get_alerts(user_id)
        watchlist = sum(1 for a in alerts if a.category == AlertCategory.WATCHLIST)
        discovery = len(alerts) - watchlist
        return AlertsSummary(
            total=len(alerts),
            watchlist=watchlist,
            discovery=discovery,
            active=sum(1 for a in alerts if a.active),
            remaining_discovery=max(0, self.discovery_limit - discovery),
        )

    def get_limits(self) -> AlertLimits:
        return AlertLimits(
            watchlist=self.watchlist_limit,
            discovery=self.discovery_limit,
            indicators=self.indicator_limit,
        )

    async def count_all(self) -> int:
        return len(self._alerts)
