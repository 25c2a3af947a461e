from __future__ import annotations

import pytest

from trendsniper.bot.wizard import WizardEngine, WizardStore
from trendsniper.bot.wizards import WIZARDS
from trendsniper.core.cache import MemoryCache
from trendsniper.core.config import Settings
from trendsniper.core.container import ServiceHub, build_hub


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, telegram_bot_token="", redis_url=None, mock_latency_ms=0)


@pytest.fixture
def hub(settings: Settings) -> ServiceHub:
    return build_hub(settings, cache=MemoryCache())


@pytest.fixture
def engine(hub: ServiceHub) -> WizardEngine:
    return WizardEngine(hub, WIZARDS, WizardStore(hub.cache, WIZARDS, ttl=hub.settings.wizard_ttl_sec))
