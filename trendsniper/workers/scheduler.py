from __future__ import annotations

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from trendsniper.core.container import ServiceHub

logger = logging.getLogger(__name__)


class WorkerScheduler:
    def __init__(self, hub: ServiceHub) -> None:
        self.hub = hub
        self.settings = hub.settings
        self.scheduler = AsyncIOScheduler(timezone="UTC")

    async def _refresh_discovery(self) -> None:
        try:
            await asyncio.to_thread(self.hub.discovery.refresh)
        except Exception as exc:  # noqa: BLE001
            logger.exception("discovery_refresh_failed", extra={"event": "discovery_refresh_failed", "error": str(exc)})

    async def _report_alerts(self) -> None:
        try:
            total = await self.hub.alerts.count_all()
            logger.info("alerts_snapshot", extra={"event": "alerts_snapshot", "count": total})
        except Exception as exc:  # noqa: BLE001
            logger.warning("alerts_snapshot_failed", extra={"event": "alerts_snapshot_failed", "error": str(exc)})

    def start(self) -> None:
        self.scheduler.add_job(
            self._refresh_discovery,
            "interval",
            minutes=max(1, int(self.settings.discovery_refresh_minutes)),
            max_instances=1,
        )
        self.scheduler.add_job(self._report_alerts, "interval", minutes=60, max_instances=1)
        self.scheduler.start()

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
