from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimeFrame(str, Enum):
    H1 = "1h"
    H4 = "4h"
    H6 = "6h"
    H12 = "12h"
    D1 = "1D"
    W1 = "1W"
    M1 = "1M"

    @property
    def display_name(self) -> str:
        return _TIMEFRAME_NAMES[self]


_TIMEFRAME_NAMES = {
    TimeFrame.H1: "1 Hour",
    TimeFrame.H4: "4 Hours",
    TimeFrame.H6: "6 Hours",
    TimeFrame.H12: "12 Hours",
    TimeFrame.D1: "1 Day",
    TimeFrame.W1: "1 Week",
    TimeFrame.M1: "1 Month",
}


class Pairing(str, Enum):
    USD = "USD"
    BTC = "BTC"
    ETH = "ETH"


class AlertCategory(str, Enum):
    WATCHLIST = "watchlist"
    DISCOVERY = "discovery"


class AlertStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"


class AlertType(str, Enum):
    PRICE_UP = "price_up"
    PRICE_DOWN = "price_down"
    PRICE_PERCENTAGE_UP = "price_percentage_up"
    PRICE_PERCENTAGE_DOWN = "price_percentage_down"
    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"
    RSI_OVERBOUGHT = "rsi_overbought"
    RSI_OVERSOLD = "rsi_oversold"
    MACD_CROSSOVER = "macd_crossover"
    MACD_CROSSUNDER = "macd_crossunder"
    MOVING_AVERAGE_CROSSOVER = "moving_average_crossover"
    MOVING_AVERAGE_CROSSUNDER = "moving_average_crossunder"
    MARKET_TRANSITION = "market_transition"
    LEVEL_BREAK = "level_break"

    @property
    def display_name(self) -> str:
        return _ALERT_TYPE_NAMES[self]


_ALERT_TYPE_NAMES = {
    AlertType.PRICE_UP: "Price Above",
    AlertType.PRICE_DOWN: "Price Below",
    AlertType.PRICE_PERCENTAGE_UP: "Price % Up",
    AlertType.PRICE_PERCENTAGE_DOWN: "Price % Down",
    AlertType.VOLUME_UP: "Volume Up",
    AlertType.VOLUME_DOWN: "Volume Down",
    AlertType.RSI_OVERBOUGHT: "RSI Overbought",
    AlertType.RSI_OVERSOLD: "RSI Oversold",
    AlertType.MACD_CROSSOVER: "MACD Crossover",
    AlertType.MACD_CROSSUNDER: "MACD Crossunder",
    AlertType.MOVING_AVERAGE_CROSSOVER: "MA Crossover",
    AlertType.MOVING_AVERAGE_CROSSUNDER: "MA Crossunder",
    AlertType.MARKET_TRANSITION: "Market Transition",
    AlertType.LEVEL_BREAK: "Level Break",
}

WATCHLIST_ALERT_TYPES = (
    AlertType.PRICE_UP,
    AlertType.PRICE_DOWN,
    AlertType.PRICE_PERCENTAGE_UP,
    AlertType.PRICE_PERCENTAGE_DOWN,
    AlertType.VOLUME_UP,
    AlertType.VOLUME_DOWN,
)

DISCOVERY_ALERT_TYPES = (
    AlertType.RSI_OVERBOUGHT,
    AlertType.RSI_OVERSOLD,
    AlertType.MACD_CROSSOVER,
    AlertType.MACD_CROSSUNDER,
    AlertType.MOVING_AVERAGE_CROSSOVER,
    AlertType.MOVING_AVERAGE_CROSSUNDER,
)


@dataclass(frozen=True)
class Coin:
    id: str
    name: str
    symbol: str
    rank: int = 0

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "symbol": self.symbol, "rank": self.rank}

    @classmethod
    def from_dict(cls, data: dict) -> "Coin":
        return cls(id=data["id"], name=data["name"], symbol=data["symbol"], rank=int(data.get("rank", 0)))


@dataclass(frozen=True)
class SearchResult:
    coin: Coin
    score: float

    def to_dict(self) -> dict:
        return {"coin": self.coin.to_dict(), "score": self.score}

    @classmethod
    def from_dict(cls, data: dict) -> "SearchResult":
        return cls(coin=Coin.from_dict(data["coin"]), score=float(data["score"]))


@dataclass
class Watchlist:
    id: str
    name: str
    owner_id: str
    coin_ids: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Alert:
    id: str
    user_id: str
    category: AlertCategory
    alert_type: AlertType
    timeframe: TimeFrame
    pairing: Pairing
    threshold: float | None = None
    coin_id: str | None = None
    coin_name: str | None = None
    watchlist_id: str | None = None
    watchlist_name: str | None = None
    indicators: list[str] = field(default_factory=list)
    # transition or break type for structural alerts
    variant: str | None = None
    message: str | None = None
    status: AlertStatus = AlertStatus.ACTIVE
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def active(self) -> bool:
        return self.status == AlertStatus.ACTIVE

    @property
    def target_name(self) -> str:
        if self.coin_name:
            return self.coin_name
        if self.watchlist_name:
            return self.watchlist_name
        return "Market-wide"


@dataclass(frozen=True)
class AlertLimits:
    watchlist: int
    discovery: int
    indicators: int


@dataclass(frozen=True)
class AlertsSummary:
    total: int
    watchlist: int
    discovery: int
    active: int
    remaining_discovery: int


@dataclass(frozen=True)
class CoinMetrics:
    coin_id: str
    name: str
    symbol: str
    price: float
    change_pct: float
    volume: float
    market_cap: float
    trend_score: float
    rsi: float
    price_vs_trend: float
    volume_vs_trend: float


class DiscoveryFeature(str, Enum):
    STRENGTH = "strength"
    AVERAGE = "average"
    SIGNALS = "signals"
    DIVERGENCES = "divergences"
    MARKET_CAP = "market_cap"
    VOLUME = "volume"

    @property
    def display_name(self) -> str:
        return _FEATURE_NAMES[self]


_FEATURE_NAMES = {
    DiscoveryFeature.STRENGTH: "Strength",
    DiscoveryFeature.AVERAGE: "Average",
    DiscoveryFeature.SIGNALS: "Latest Signals",
    DiscoveryFeature.DIVERGENCES: "Divergences",
    DiscoveryFeature.MARKET_CAP: "Market Cap",
    DiscoveryFeature.VOLUME: "Volume",
}


@dataclass
class DiscoveryQuery:
    feature: DiscoveryFeature
    timeframe: TimeFrame = TimeFrame.D1
    pairing: Pairing = Pairing.USD
    strength: str | None = None  # strongest | weakest
    indicator: str | None = None  # trend_score | rsi | price_vs_trend | volume_vs_trend
    sentiment: str | None = None  # bullish_to_bearish | bearish_to_bullish
    page: int = 0
    limit: int = 5


@dataclass(frozen=True)
class DiscoveryPage:
    items: list[CoinMetrics]
    page: int
    total: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 1
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_prev(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages
