from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from trendsniper.bot import menus, templates
from trendsniper.bot.wizard import (
    WIZARD_FAILED,
    Draft,
    Run,
    Screen,
    Step,
    StepSpec,
    Transition,
    WizardEngine,
    WizardSpec,
    WizardStore,
)
from trendsniper.bot.wizards import WIZARDS
from trendsniper.core.cache import MemoryCache
from trendsniper.core.config import Settings
from trendsniper.core.container import ServiceHub, build_hub
from trendsniper.services.alerts import DEMO_USER_ID
from trendsniper.services.models import AlertCategory, AlertStatus, AlertType, DiscoveryFeature, Pairing, TimeFrame

USER = "777"

# one action per step of the watchlist path, in order
WATCHLIST_ALERT_ACTIONS = [
    ("cb", "select_alert_watchlist"),
    ("text", "bitcoin"),
    ("cb", "select_watchlist_watch1"),
    ("cb", "alert_type_PRICE_UP"),
    ("text", "50000"),
    ("cb", "timeframe_12h"),
    ("cb", "pairing_USD"),
    ("cb", "message_submit"),
]


async def _act(engine: WizardEngine, chat_id: int, kind: str, value: str, user_id: str = USER):
    if kind == "cb":
        return await engine.handle_callback(chat_id, user_id, value)
    return await engine.handle_text(chat_id, user_id, value)


async def _step(engine: WizardEngine, chat_id: int) -> Step | None:
    state = await engine.active(chat_id)
    return state.step if state else None


@pytest.mark.asyncio
async def test_create_watchlist_alert_end_to_end(engine: WizardEngine, hub: ServiceHub) -> None:
    await engine.enter(1, USER, "create_alert")
    for kind, value in WATCHLIST_ALERT_ACTIONS:
        await _act(engine, 1, kind, value)
    assert await _step(engine, 1) == Step.CONFIRM

    reply = await engine.handle_callback(1, USER, "create_alert_confirm")
    assert reply is not None
    assert reply.toast == "Alert created!"
    assert reply.screens[-1].fresh
    assert await engine.active(1) is None

    alerts = await hub.alerts.get_watchlist_alerts(USER, "watch1")
    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.status == AlertStatus.ACTIVE
    assert alert.alert_type == AlertType.PRICE_UP
    assert alert.coin_id == "bitcoin"
    assert alert.threshold == 50000.0
    assert alert.timeframe == TimeFrame.H12
    assert alert.pairing == Pairing.USD


# canned answers per step, enough to walk each path up to its last step
PATH_ACTIONS: dict[tuple[str, str], list[list[tuple[str, str]]]] = {
    ("create_alert", "watchlist"): [[action] for action in WATCHLIST_ALERT_ACTIONS],
    ("create_alert", "discovery"): [
        [("cb", "select_alert_discovery")],
        [("cb", "alert_type_RSI_OVERBOUGHT")],
        [("text", "70")],
        [("cb", "timeframe_12h")],
        [("cb", "pairing_USD")],
        [("cb", "message_submit")],
    ],
    ("market_transition_alert", "main"): [
        [("cb", "transition_type_Bullish to Bearish")],
        [("cb", "timeframe_1D")],
        [("cb", "pairing_USD")],
    ],
    ("level_break_alert", "main"): [
        [("cb", "break_type_Support Break")],
        [("cb", "timeframe_1D")],
        [("cb", "pairing_USD")],
    ],
    ("discovery_alert", "main"): [
        [("text", "bitcoin")],
        [("cb", "alert_type_LEVEL_BREAK")],
        [("cb", "multipicker_option_RSI"), ("cb", "multipicker_CHOOSE")],
        [("cb", "cmbpicker_pair_USD"), ("cb", "cmbpicker_tf_1D"), ("cb", "cmbpicker_CHOOSE")],
    ],
    ("delete_alert", "main"): [[("cb", "delete_filter_all")], [("cb", "delete_pick_alert_1")]],
    ("show_watchlist_alerts", "main"): [[("cb", "select_watchlist_all")]],
    ("show_discovery_alerts", "main"): [],
    ("add_coin", "main"): [[("text", "bitcoin")], [("cb", "select_watchlist_watch1")]],
    ("create_watchlist", "main"): [],
    ("delete_watchlist", "main"): [[("cb", "select_watchlist_watch1")]],
    ("charting", "main"): [[("text", "bitcoin")]],
    ("discovery", "strength"): [
        [("cb", "discovery_feature_strength")],
        [("cb", "strength_strongest")],
        [("cb", "cmbpicker_pair_USD"), ("cb", "cmbpicker_tf_1D"), ("cb", "cmbpicker_CHOOSE")],
    ],
    ("discovery", "average"): [
        [("cb", "discovery_feature_average")],
        [("cb", "indicator_rsi")],
        [("cb", "cmbpicker_pair_USD"), ("cb", "cmbpicker_tf_1D"), ("cb", "cmbpicker_CHOOSE")],
    ],
    ("discovery", "signals"): [
        [("cb", "discovery_feature_signals")],
        [("cb", "indicator_trend_score")],
        [("cb", "sentiment_bullish_to_bearish")],
        [("cb", "cmbpicker_pair_USD"), ("cb", "cmbpicker_tf_1D"), ("cb", "cmbpicker_CHOOSE")],
    ],
    ("discovery", "simple"): [
        [("cb", "discovery_feature_volume")],
        [("cb", "cmbpicker_pair_USD"), ("cb", "cmbpicker_tf_1D"), ("cb", "cmbpicker_CHOOSE")],
    ],
}

ALL_PATHS = [(name, path) for name, spec in WIZARDS.items() for path in spec.paths]


def test_every_path_has_canned_actions() -> None:
    assert sorted(PATH_ACTIONS) == sorted(ALL_PATHS)
    for (name, path), actions in PATH_ACTIONS.items():
        assert len(actions) == len(WIZARDS[name].paths[path]) - 1, (name, path)


@pytest.mark.asyncio
@pytest.mark.parametrize(("name", "path"), ALL_PATHS)
async def test_go_back_renders_previous_step_for_every_position(engine: WizardEngine, name: str, path: str) -> None:
    steps = WIZARDS[name].paths[path]
    for n in range(len(steps)):
        chat_id = 100 + n
        await engine.enter(chat_id, DEMO_USER_ID, name)
        for step_actions in PATH_ACTIONS[(name, path)][:n]:
            for kind, value in step_actions:
                await _act(engine, chat_id, kind, value, user_id=DEMO_USER_ID)
        state = await engine.active(chat_id)
        assert state is not None and state.step == steps[n]
        # the path is only known once the first answer is in
        if n > 0:
            assert state.path == path

        reply = await engine.go_back(chat_id, DEMO_USER_ID)
        assert reply is not None and len(reply.screens) == 1
        if n == 0:
            assert await engine.active(chat_id) is None
        else:
            assert await _step(engine, chat_id) == steps[n - 1]


@pytest.mark.asyncio
async def test_go_back_from_first_step_leaves_to_parent(engine: WizardEngine) -> None:
    await engine.enter(5, USER, "create_alert")
    reply = await engine.handle_callback(5, USER, "go_back")
    assert reply is not None
    assert await engine.active(5) is None
    assert "Alerts" in reply.screens[0].text


@pytest.mark.asyncio
async def test_go_back_clears_the_departed_step(engine: WizardEngine) -> None:
    await engine.enter(6, USER, "create_alert")
    for kind, value in WATCHLIST_ALERT_ACTIONS[:5]:
        await _act(engine, 6, kind, value)
    state = await engine.active(6)
    assert state.step == Step.TIMEFRAME and state.draft.threshold == 50000.0

    await engine.go_back(6, USER)
    await engine.go_back(6, USER)
    state = await engine.active(6)
    assert state.step == Step.TYPE
    assert state.draft.threshold is None
    assert state.draft.alert_type == AlertType.PRICE_UP


@pytest.mark.asyncio
async def test_stale_callback_changes_nothing(engine: WizardEngine) -> None:
    await engine.enter(7, USER, "create_alert")
    reply = await engine.handle_callback(7, USER, "timeframe_12h")
    assert reply is not None
    assert reply.toast == templates.STALE_BUTTON
    assert reply.screens == []
    assert await _step(engine, 7) == Step.KIND


@pytest.mark.asyncio
async def test_text_on_button_step_gets_hint(engine: WizardEngine) -> None:
    await engine.enter(8, USER, "create_alert")
    reply = await engine.handle_text(8, USER, "hello")
    assert reply is not None and reply.toast
    assert await _step(engine, 8) == Step.KIND


@pytest.mark.asyncio
async def test_non_numeric_threshold_is_rejected(engine: WizardEngine) -> None:
    await engine.enter(9, USER, "create_alert")
    for kind, value in WATCHLIST_ALERT_ACTIONS[:4]:
        await _act(engine, 9, kind, value)
    reply = await engine.handle_text(9, USER, "a lot")
    assert reply is not None and reply.toast
    assert await _step(engine, 9) == Step.THRESHOLD


@pytest.mark.asyncio
async def test_unexpected_error_returns_to_parent(engine: WizardEngine, hub: ServiceHub, monkeypatch) -> None:
    await engine.enter(10, USER, "market_transition_alert")
    await engine.handle_callback(10, USER, "transition_type_Bullish to Bearish")
    await engine.handle_callback(10, USER, "timeframe_1D")
    await engine.handle_callback(10, USER, "pairing_USD")
    assert await _step(engine, 10) == Step.CONFIRM

    async def boom(**kwargs):
        raise RuntimeError("backend exploded")

    monkeypatch.setattr(hub.alerts, "create_alert", boom)
    reply = await engine.handle_callback(10, USER, "create_alert_confirm")
    assert reply is not None
    assert reply.screens[0].text == WIZARD_FAILED
    assert reply.screens[1].fresh
    assert await engine.active(10) is None


@pytest.mark.asyncio
async def test_limit_error_aborts_with_message(engine: WizardEngine, hub: ServiceHub) -> None:
    for _ in range(3):
        await hub.alerts.create_alert(
            user_id=USER,
            category=AlertCategory.WATCHLIST,
            alert_type=AlertType.PRICE_DOWN,
            timeframe=TimeFrame.H1,
            pairing=Pairing.USD,
            watchlist_id="watch1",
        )
    await engine.enter(11, USER, "create_alert")
    for kind, value in WATCHLIST_ALERT_ACTIONS:
        await _act(engine, 11, kind, value)
    reply = await engine.handle_callback(11, USER, "create_alert_confirm")
    assert reply is not None
    assert reply.screens[0].text.startswith("⚠️")
    assert await engine.active(11) is None


@pytest.mark.asyncio
async def test_coin_preset_skips_filled_steps(engine: WizardEngine) -> None:
    await engine.enter(12, USER, "create_alert", {"coin_id": "ethereum"})
    state = await engine.active(12)
    assert state.step == Step.WATCHLIST
    assert state.draft.category == AlertCategory.WATCHLIST
    assert state.draft.coin_name == "Ethereum"

    await engine.go_back(12, USER)
    assert await _step(engine, 12) == Step.COIN


@pytest.mark.asyncio
async def test_unknown_coin_preset_returns_to_parent(engine: WizardEngine) -> None:
    reply = await engine.enter(13, USER, "charting", {"coin_id": "not-a-coin"})
    assert reply.toast == "That coin is not in the catalog."
    assert await engine.active(13) is None


@pytest.mark.asyncio
async def test_weak_search_offers_manual_pick(engine: WizardEngine) -> None:
    await engine.enter(14, USER, "charting")
    reply = await engine.handle_text(14, USER, "etherium")
    assert reply is not None
    state = await engine.active(14)
    assert state.step == Step.COIN
    assert state.draft.search["query"] == "etherium"
    await engine.handle_callback(14, USER, "coinsearch_select_ethereum")
    state = await engine.active(14)
    assert state.step == Step.PAIR_TIME
    assert state.draft.coin_id == "ethereum"


@pytest.mark.asyncio
async def test_open_breaker_keeps_user_on_step(engine: WizardEngine, hub: ServiceHub) -> None:
    await engine.enter(15, USER, "charting")
    hub.coins.fail_next(3)
    for _ in range(3):
        reply = await engine.handle_text(15, USER, "bitcoin")
        assert reply.toast == templates.GENERIC_RETRY
    reply = await engine.handle_text(15, USER, "bitcoin")
    assert reply.toast == "Coin search is temporarily unavailable."
    assert reply.alert
    assert await _step(engine, 15) == Step.COIN


@pytest.mark.asyncio
async def test_chart_wizard_sends_photo(engine: WizardEngine) -> None:
    await engine.enter(16, USER, "charting", {"coin_id": "bitcoin"})
    assert await _step(engine, 16) == Step.PAIR_TIME
    await engine.handle_callback(16, USER, "cmbpicker_pair_USD")
    await engine.handle_callback(16, USER, "cmbpicker_tf_4h")
    reply = await engine.handle_callback(16, USER, "cmbpicker_CHOOSE")
    assert reply is not None
    photo = reply.screens[0]
    assert photo.photo is not None and photo.photo.startswith(b"\x89PNG")
    assert photo.fresh
    assert await engine.active(16) is None


@pytest.mark.asyncio
async def test_discovery_alert_with_indicators(engine: WizardEngine, hub: ServiceHub) -> None:
    await engine.enter(17, USER, "discovery_alert", {"coin_id": "solana"})
    assert await _step(engine, 17) == Step.TYPE
    await engine.handle_callback(17, USER, "alert_type_LEVEL_BREAK")
    for option in ("RSI", "MACD", "Bollinger"):
        await engine.handle_callback(17, USER, f"multipicker_option_{option}")
    reply = await engine.handle_callback(17, USER, "multipicker_option_Stochastic")
    assert reply.toast == "Maximum 3 options allowed"
    await engine.handle_callback(17, USER, "multipicker_CHOOSE")
    await engine.handle_callback(17, USER, "cmbpicker_pair_ETH")
    await engine.handle_callback(17, USER, "cmbpicker_tf_1W")
    await engine.handle_callback(17, USER, "cmbpicker_CHOOSE")
    assert await _step(engine, 17) == Step.CONFIRM
    await engine.handle_callback(17, USER, "create_alert_confirm")

    alerts = await hub.alerts.get_discovery_alerts(USER)
    assert len(alerts) == 1
    assert alerts[0].indicators == ["RSI", "MACD", "Bollinger"]
    assert alerts[0].alert_type == AlertType.LEVEL_BREAK
    assert alerts[0].coin_id == "solana"


@pytest.mark.asyncio
async def test_delete_alert_flow(engine: WizardEngine, hub: ServiceHub) -> None:
    await engine.enter(18, DEMO_USER_ID, "delete_alert")
    await engine.handle_callback(18, DEMO_USER_ID, "delete_filter_all")
    assert await _step(engine, 18) == Step.PICK
    await engine.handle_callback(18, DEMO_USER_ID, "delete_pick_alert_1")
    assert await _step(engine, 18) == Step.CONFIRM
    reply = await engine.handle_callback(18, DEMO_USER_ID, "delete_alert_confirm")
    assert reply.toast == "Alert deleted"
    assert await hub.alerts.get_alert("alert_1") is None


@pytest.mark.asyncio
async def test_delete_of_vanished_alert_goes_back(engine: WizardEngine, hub: ServiceHub) -> None:
    await engine.enter(19, DEMO_USER_ID, "delete_alert")
    await engine.handle_callback(19, DEMO_USER_ID, "delete_filter_watchlist")
    await engine.handle_callback(19, DEMO_USER_ID, "delete_pick_alert_2")
    await hub.alerts.delete_alert("alert_2")
    reply = await engine.handle_callback(19, DEMO_USER_ID, "delete_alert_confirm")
    assert reply.toast == "That alert was already deleted."
    assert await _step(engine, 19) == Step.PICK


@pytest.mark.asyncio
async def test_toggle_from_discovery_list(engine: WizardEngine, hub: ServiceHub) -> None:
    await engine.enter(20, DEMO_USER_ID, "show_discovery_alerts")
    assert await _step(engine, 20) == Step.LIST
    reply = await engine.handle_callback(20, DEMO_USER_ID, "alert_toggle_alert_3")
    assert reply.toast == "Alert paused"
    assert (await hub.alerts.get_alert("alert_3")).status == AlertStatus.PAUSED

    await engine.enter(21, "someone-else", "show_discovery_alerts")
    reply = await engine.handle_callback(21, "someone-else", "alert_toggle_alert_3")
    assert reply.toast == "That alert no longer exists."
    assert (await hub.alerts.get_alert("alert_3")).status == AlertStatus.PAUSED


@pytest.mark.asyncio
async def test_create_and_delete_watchlist(engine: WizardEngine, hub: ServiceHub) -> None:
    await engine.enter(22, USER, "create_watchlist")
    reply = await engine.handle_text(22, USER, "x" * 40)
    assert reply.toast
    await engine.handle_text(22, USER, "Moonshots")
    assert await engine.active(22) is None
    created = [w for w in await hub.watchlists.get_watchlists(USER) if w.name == "Moonshots"]
    assert len(created) == 1

    await engine.enter(23, USER, "delete_watchlist")
    await engine.handle_callback(23, USER, f"select_watchlist_{created[0].id}")
    await engine.handle_callback(23, USER, "delete_watchlist_confirm")
    assert await hub.watchlists.get_watchlist(USER, created[0].id) is None


@pytest.mark.asyncio
async def test_add_coin_to_watchlist(engine: WizardEngine, hub: ServiceHub) -> None:
    await engine.enter(24, USER, "add_coin", {"coin_id": "dogecoin"})
    await engine.handle_callback(24, USER, "select_watchlist_watch2")
    await engine.handle_callback(24, USER, "add_coin_confirm")
    watchlist = await hub.watchlists.get_watchlist(USER, "watch2")
    assert "dogecoin" in watchlist.coin_ids


@pytest.mark.asyncio
async def test_strength_discovery_paths_and_pages(engine: WizardEngine) -> None:
    await engine.enter(25, USER, "discovery", {"feature": "strength"})
    state = await engine.active(25)
    assert state.path == "strength"
    assert state.step == Step.STRENGTH

    await engine.handle_callback(25, USER, "strength_weakest")
    await engine.handle_callback(25, USER, "cmbpicker_pair_USD")
    await engine.handle_callback(25, USER, "cmbpicker_tf_1D")
    reply = await engine.handle_callback(25, USER, "cmbpicker_CHOOSE")
    assert await _step(engine, 25) == Step.RESULTS
    assert reply.screens[0].markup is not None

    await engine.handle_callback(25, USER, "discovery_page_1")
    state = await engine.active(25)
    assert state.step == Step.RESULTS and state.draft.page == 1

    await engine.go_back(25, USER)
    state = await engine.active(25)
    assert state.step == Step.PAIR_TIME and state.draft.page == 0


@pytest.mark.asyncio
async def test_discovery_feature_selects_path(engine: WizardEngine) -> None:
    await engine.enter(26, USER, "discovery")
    await engine.handle_callback(26, USER, "discovery_feature_signals")
    state = await engine.active(26)
    assert state.path == "signals"
    assert state.draft.feature == DiscoveryFeature.SIGNALS
    assert state.step == Step.INDICATOR

    await engine.go_back(26, USER)
    await engine.handle_callback(26, USER, "discovery_feature_volume")
    state = await engine.active(26)
    assert state.path == "simple"
    assert state.step == Step.PAIR_TIME


@pytest.mark.asyncio
async def test_every_wizard_renders_its_first_step(engine: WizardEngine) -> None:
    for index, name in enumerate(WIZARDS):
        reply = await engine.enter(300 + index, DEMO_USER_ID, name)
        assert reply.screens, name
        assert reply.screens[0].text, name
        assert await engine.active(300 + index) is not None, name


@dataclass
class NoteDraft(Draft):
    note: str | None = None


async def _render_step(run: Run) -> Screen:
    return Screen(f"step {run.state.step.value}")


async def _jump_or_quit(run: Run, data: str) -> Transition:
    if data == "jump":
        return Transition.goto(Step.CONFIRM)
    return Transition.leave(toast="bye")


JUMPY = WizardSpec(
    name="jumpy",
    draft_type=NoteDraft,
    steps={
        Step.NAME: StepSpec(render=_render_step, accepts=("jump", "quit"), on_callback=_jump_or_quit),
        Step.MESSAGE: StepSpec(render=_render_step),
        Step.CONFIRM: StepSpec(render=_render_step),
    },
    paths={"main": (Step.NAME, Step.MESSAGE, Step.CONFIRM)},
    parent=menus.main_menu_screen,
)


def _jumpy_engine(hub: ServiceHub) -> WizardEngine:
    specs = {JUMPY.name: JUMPY}
    return WizardEngine(hub, specs, WizardStore(hub.cache, specs))


@pytest.mark.asyncio
async def test_goto_and_back_follow_the_path(hub: ServiceHub) -> None:
    engine = _jumpy_engine(hub)
    await engine.enter(400, USER, "jumpy")
    reply = await engine.handle_callback(400, USER, "jump")
    assert reply.screens[0].text == "step confirm"
    reply = await engine.go_back(400, USER)
    assert reply.screens[0].text == "step message"


@pytest.mark.asyncio
async def test_leave_clears_state_and_shows_parent(hub: ServiceHub) -> None:
    engine = _jumpy_engine(hub)
    await engine.enter(401, USER, "jumpy")
    reply = await engine.handle_callback(401, USER, "quit")
    assert reply.toast == "bye"
    assert await engine.active(401) is None
    assert "TrendSniper" in reply.screens[0].text


@pytest.mark.asyncio
async def test_corrupt_state_is_dropped(hub: ServiceHub) -> None:
    engine = _jumpy_engine(hub)
    await hub.cache.set_json("wizard:402", {"wizard": "jumpy", "step": "nonsense", "path": "main"}, ttl=60)
    assert await engine.active(402) is None
    assert await hub.cache.get_json("wizard:402") is None
    assert await engine.handle_text(402, USER, "hello") is None


@pytest.fixture
def slow_engine() -> WizardEngine:
    hub = build_hub(Settings(_env_file=None, telegram_bot_token="", redis_url=None, mock_latency_ms=50), cache=MemoryCache())
    return WizardEngine(hub, WIZARDS, WizardStore(hub.cache, WIZARDS))


@pytest.mark.asyncio
async def test_double_tap_on_confirm_creates_one_alert(slow_engine: WizardEngine) -> None:
    await slow_engine.enter(500, USER, "market_transition_alert")
    await slow_engine.handle_callback(500, USER, "transition_type_Bullish to Bearish")
    await slow_engine.handle_callback(500, USER, "timeframe_1D")
    await slow_engine.handle_callback(500, USER, "pairing_USD")
    assert await _step(slow_engine, 500) == Step.CONFIRM

    first, second = await asyncio.gather(
        slow_engine.handle_callback(500, USER, "create_alert_confirm"),
        slow_engine.handle_callback(500, USER, "create_alert_confirm"),
    )
    assert first is not None and first.toast == "Alert created!"
    assert second is None
    assert len(await slow_engine.hub.alerts.get_discovery_alerts(USER)) == 1


@pytest.mark.asyncio
async def test_quick_toggles_on_multi_picker_are_all_kept(slow_engine: WizardEngine) -> None:
    await slow_engine.enter(501, USER, "discovery_alert", {"coin_id": "solana"})
    await slow_engine.handle_callback(501, USER, "alert_type_LEVEL_BREAK")
    assert await _step(slow_engine, 501) == Step.INDICATORS

    await asyncio.gather(
        slow_engine.handle_callback(501, USER, "multipicker_option_RSI"),
        slow_engine.handle_callback(501, USER, "multipicker_option_MACD"),
    )
    state = await slow_engine.active(501)
    assert sorted(state.draft.indicators) == ["MACD", "RSI"]


def test_idle_chat_locks_are_pruned(engine: WizardEngine) -> None:
    engine.locks_max = 4
    for chat_id in range(4):
        engine._chat_lock(chat_id)
    engine._chat_lock(99)
    assert len(engine._locks) <= 4
    assert 99 in engine._locks
