from __future__ import annotations

import asyncio
import logging
from io import BytesIO

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from trendsniper.core.ta import ema, random_walk  # noqa: E402
from trendsniper.services.models import Pairing, TimeFrame  # noqa: E402

logger = logging.getLogger(__name__)

_POINTS = 120
_VOLATILITY = {
    TimeFrame.H1: 0.004,
    TimeFrame.H4: 0.008,
    TimeFrame.H6: 0.01,
    TimeFrame.H12: 0.014,
    TimeFrame.D1: 0.02,
    TimeFrame.W1: 0.045,
    TimeFrame.M1: 0.08,
}


class ChartService:
    def __init__(self, seed: int | None = None) -> None:
        self._rng = np.random.default_rng(seed)

    def _render(self, coin_name: str, pairing: Pairing, timeframe: TimeFrame) -> bytes:
        close = random_walk(self._rng, 100.0, _POINTS, _VOLATILITY[timeframe])
        trend = ema(close, 20)

        # Figure instead of pyplot: renders run in worker threads.
        fig = Figure(figsize=(7, 3.5), dpi=100)
        ax = fig.add_subplot(1, 1, 1)
        ax.plot(close.index, close.values, color="#2f80ed", linewidth=1.4, label="Close")
        ax.plot(trend.index, trend.values, color="#f2994a", linewidth=1.1, linestyle="--", label="Trend")
        ax.fill_between(close.index, close.values, trend.values, where=close.values >= trend.values, color="#27ae60", alpha=0.12)
        ax.fill_between(close.index, close.values, trend.values, where=close.values < trend.values, color="#eb5757", alpha=0.12)
        ax.set_title(f"{coin_name}/{pairing.value} · {timeframe.display_name}")
        ax.set_xticks([])
        ax.grid(alpha=0.25)
        ax.legend(loc="upper left", fontsize=8)
        fig.tight_layout()

        buf = BytesIO()
        fig.savefig(buf, format="png")
        return buf.getvalue()

    async def render_chart(self, coin_name: str, pairing: Pairing, timeframe: TimeFrame) -> bytes:
        png = await asyncio.to_thread(self._render, coin_name, pairing, timeframe)
        logger.info("chart_rendered", extra={"event": "chart_rendered", "count": len(png)})
        return png
