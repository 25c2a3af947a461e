"""Wizard definitions. Every flow is a step table plus one or more paths."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from trendsniper.bot import keyboards, menus, templates
from trendsniper.bot.pickers import paginate
from trendsniper.bot.steps import (
    choice_step,
    coin_step,
    confirm_step,
    message_step,
    multi_pick_step,
    pair_time_step,
    pairing_step,
    preset_coin,
    static_choices,
    threshold_step,
    timeframe_step,
    watchlist_step,
)
from trendsniper.bot.wizard import Draft, Run, Screen, Step, StepSpec, Transition, WizardSpec
from trendsniper.core.errors import NotFoundError, ValidationError
from trendsniper.core.fmt import safe_html
from trendsniper.services.discovery import INDICATOR_COLUMNS, SENTIMENT_CHOICES, STRENGTH_CHOICES
from trendsniper.services.models import (
    DISCOVERY_ALERT_TYPES,
    WATCHLIST_ALERT_TYPES,
    Alert,
    AlertCategory,
    AlertType,
    DiscoveryFeature,
    DiscoveryQuery,
    Pairing,
    TimeFrame,
)
from trendsniper.services.options import OptionsType

ALERTS_PER_PAGE = 5


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------

@dataclass
class AlertDraft(Draft):
    enum_fields = {"category": AlertCategory, "alert_type": AlertType, "timeframe": TimeFrame, "pairing": Pairing}

    category: AlertCategory | None = None
    coin_id: str | None = None
    coin_name: str | None = None
    search: dict | None = None
    watchlist_id: str | None = None
    watchlist_name: str | None = None
    alert_type: AlertType | None = None
    variant: str | None = None
    threshold: float | None = None
    indicators: list[str] = field(default_factory=list)
    timeframe: TimeFrame | None = None
    pairing: Pairing | None = None
    message: str | None = None


@dataclass
class AlertListDraft(Draft):
    filter: str | None = None
    watchlist_id: str | None = None
    watchlist_name: str | None = None
    alert_id: str | None = None
    page: int = 0


@dataclass
class WatchlistDraft(Draft):
    coin_id: str | None = None
    coin_name: str | None = None
    search: dict | None = None
    watchlist_id: str | None = None
    watchlist_name: str | None = None


@dataclass
class ChartDraft(Draft):
    enum_fields = {"timeframe": TimeFrame, "pairing": Pairing}

    coin_id: str | None = None
    coin_name: str | None = None
    search: dict | None = None
    pairing: Pairing | None = None
    timeframe: TimeFrame | None = None


@dataclass
class DiscoveryDraft(Draft):
    enum_fields = {"feature": DiscoveryFeature, "timeframe": TimeFrame, "pairing": Pairing}

    feature: DiscoveryFeature | None = None
    strength: str | None = None
    indicator: str | None = None
    sentiment: str | None = None
    pairing: Pairing | None = None
    timeframe: TimeFrame | None = None
    page: int = 0


# ---------------------------------------------------------------------------
# Alert creation
# ---------------------------------------------------------------------------

def _summary_lines(draft: AlertDraft) -> list[str]:
    return templates.alert_summary_lines(
        alert_type=draft.alert_type,
        coin_name=draft.coin_name,
        watchlist_name=draft.watchlist_name,
        threshold=draft.threshold,
        timeframe_name=draft.timeframe.display_name if draft.timeframe else None,
        pairing=draft.pairing,
        indicators=draft.indicators,
        variant=draft.variant,
        message=draft.message,
    )


async def _alert_confirm_text(run: Run) -> str:
    return templates.alert_confirm_text(_summary_lines(run.draft))


async def _create_alert(run: Run) -> Transition:
    draft: AlertDraft = run.draft
    if draft.alert_type is None or draft.timeframe is None or draft.pairing is None:
        raise ValidationError("Missing required alert parameters.")
    alert: Alert = await run.hub.alerts.create_alert(
        user_id=run.user_id,
        category=draft.category or AlertCategory.DISCOVERY,
        alert_type=draft.alert_type,
        timeframe=draft.timeframe,
        pairing=draft.pairing,
        threshold=draft.threshold,
        coin_id=draft.coin_id,
        coin_name=draft.coin_name,
        watchlist_id=draft.watchlist_id,
        watchlist_name=draft.watchlist_name,
        indicators=draft.indicators,
        variant=draft.variant,
        message=draft.message,
    )
    return Transition.finish([Screen(templates.alert_created_text(alert))], toast="Alert created!")


def alert_confirm_step() -> StepSpec:
    return confirm_step(_alert_confirm_text, "create_alert_confirm", _create_alert)


def _kind_step() -> StepSpec:
    def apply(run: Run, value: str) -> None:
        run.draft.category = AlertCategory(value)

    return choice_step(
        prompt=lambda run: templates.alert_kind_prompt(),
        prefix="select_alert_",
        choices=static_choices([("📋 Watchlist Alert", "watchlist"), ("🔎 Discovery Alert", "discovery")]),
        apply=apply,
        owns=("category",),
        selected=lambda run: run.draft.category.value if run.draft.category else None,
    )


def _alert_type_step(types_for: Callable[[Run], tuple[AlertType, ...]]) -> StepSpec:
    async def choices(run: Run) -> list[tuple[str, str]]:
        return [(t.display_name, t.name) for t in types_for(run)]

    def apply(run: Run, value: str) -> None:
        run.draft.alert_type = AlertType[value]

    return choice_step(
        prompt=lambda run: templates.alert_type_prompt(run.draft.category),
        prefix="alert_type_",
        choices=choices,
        apply=apply,
        owns=("alert_type",),
        selected=lambda run: run.draft.alert_type.name if run.draft.alert_type else None,
    )


def _types_for_category(run: Run) -> tuple[AlertType, ...]:
    if run.draft.category == AlertCategory.DISCOVERY:
        return DISCOVERY_ALERT_TYPES
    return WATCHLIST_ALERT_TYPES


async def _create_alert_enter(run: Run, preset: dict) -> None:
    draft: AlertDraft = run.draft
    if preset.get("is_discovery"):
        draft.category = AlertCategory.DISCOVERY
        return
    if preset.get("coin_id"):
        draft.category = AlertCategory.WATCHLIST
        await preset_coin(run, preset["coin_id"])
    if preset.get("watchlist_id"):
        draft.category = AlertCategory.WATCHLIST
        watchlist = await run.hub.watchlists.get_watchlist(run.user_id, preset["watchlist_id"])
        if watchlist is None:
            raise NotFoundError("That watchlist no longer exists.")
        draft.watchlist_id, draft.watchlist_name = watchlist.id, watchlist.name


CREATE_ALERT = WizardSpec(
    name="create_alert",
    draft_type=AlertDraft,
    steps={
        Step.KIND: _kind_step(),
        Step.COIN: coin_step("Which coin should this alert track?"),
        Step.WATCHLIST: watchlist_step("Add the alert to which watchlist?"),
        Step.TYPE: _alert_type_step(_types_for_category),
        Step.THRESHOLD: threshold_step(),
        Step.TIMEFRAME: timeframe_step(),
        Step.PAIRING: pairing_step(),
        Step.MESSAGE: message_step(),
        Step.CONFIRM: alert_confirm_step(),
    },
    paths={
        "watchlist": (
            Step.KIND,
            Step.COIN,
            Step.WATCHLIST,
            Step.TYPE,
            Step.THRESHOLD,
            Step.TIMEFRAME,
            Step.PAIRING,
            Step.MESSAGE,
            Step.CONFIRM,
        ),
        "discovery": (Step.KIND, Step.TYPE, Step.THRESHOLD, Step.TIMEFRAME, Step.PAIRING, Step.MESSAGE, Step.CONFIRM),
    },
    parent=menus.alerts_menu_screen,
    choose_path=lambda d: "discovery" if d.category == AlertCategory.DISCOVERY else "watchlist",
    on_enter=_create_alert_enter,
)


def _variant_step(title: str, body: str, prefix: str, options_type: OptionsType) -> StepSpec:
    async def choices(run: Run) -> list[tuple[str, str]]:
        return [(o, o) for o in await run.hub.options.get_options(options_type)]

    def apply(run: Run, value: str) -> None:
        run.draft.variant = value

    return choice_step(
        prompt=lambda run: templates.option_prompt(title, body),
        prefix=prefix,
        choices=choices,
        apply=apply,
        owns=("variant",),
        selected=lambda run: run.draft.variant,
    )


def _structural_alert(name: str, alert_type: AlertType, first: Step, variant: StepSpec) -> WizardSpec:
    """Transition and level-break alerts share one shape: variant, timeframe, pairing, confirm."""

    async def on_enter(run: Run, preset: dict) -> None:
        run.draft.category = AlertCategory.DISCOVERY
        run.draft.alert_type = alert_type

    return WizardSpec(
        name=name,
        draft_type=AlertDraft,
        steps={
            first: variant,
            Step.TIMEFRAME: timeframe_step(),
            Step.PAIRING: pairing_step(),
            Step.CONFIRM: alert_confirm_step(),
        },
        paths={"main": (first, Step.TIMEFRAME, Step.PAIRING, Step.CONFIRM)},
        parent=menus.alerts_menu_screen,
        on_enter=on_enter,
    )


MARKET_TRANSITION_ALERT = _structural_alert(
    "market_transition_alert",
    AlertType.MARKET_TRANSITION,
    Step.TRANSITION,
    _variant_step(
        "🔄 Market Transition Alert",
        "Get notified when market sentiment flips.\nSelect the transition to track:",
        "transition_type_",
        OptionsType.MARKET_TRANSITIONS,
    ),
)

LEVEL_BREAK_ALERT = _structural_alert(
    "level_break_alert",
    AlertType.LEVEL_BREAK,
    Step.BREAK,
    _variant_step(
        "📊 Level Break Alert",
        "Get notified when support or resistance breaks or holds.\nSelect the level event to track:",
        "break_type_",
        OptionsType.LEVEL_BREAKS,
    ),
)


async def _discovery_alert_enter(run: Run, preset: dict) -> None:
    run.draft.category = AlertCategory.DISCOVERY
    await preset_coin(run, preset.get("coin_id"))


DISCOVERY_ALERT = WizardSpec(
    name="discovery_alert",
    draft_type=AlertDraft,
    steps={
        Step.COIN: coin_step("🔎 Discovery alert: which coin?"),
        Step.TYPE: _alert_type_step(lambda run: (AlertType.MARKET_TRANSITION, AlertType.LEVEL_BREAK)),
        Step.INDICATORS: multi_pick_step(
            "Indicators",
            OptionsType.INDICATORS,
            lambda run: run.hub.alerts.get_limits().indicators,
        ),
        Step.PAIR_TIME: pair_time_step("Pairing & timeframe"),
        Step.CONFIRM: alert_confirm_step(),
    },
    paths={"main": (Step.COIN, Step.TYPE, Step.INDICATORS, Step.PAIR_TIME, Step.CONFIRM)},
    parent=menus.alerts_menu_screen,
    on_enter=_discovery_alert_enter,
)


# ---------------------------------------------------------------------------
# Alert lists
# ---------------------------------------------------------------------------

async def _filtered_alerts(run: Run) -> list[Alert]:
    draft: AlertListDraft = run.draft
    alerts = run.hub.alerts
    if draft.filter == "watchlist":
        return await alerts.get_watchlist_alerts(run.user_id)
    if draft.filter == "discovery":
        return await alerts.get_discovery_alerts(run.user_id)
    if draft.filter == "all":
        return await alerts.get_alerts(run.user_id)
    if draft.watchlist_id and draft.watchlist_id != "all":
        return await alerts.get_watchlist_alerts(run.user_id, draft.watchlist_id)
    return await alerts.get_watchlist_alerts(run.user_id)


def _alert_page_step(
    *,
    title: Callable[[Run], str],
    item_prefix: str,
    page_prefix: str,
    on_item: Callable[[Run, Alert], Awaitable[Transition]],
    owns: tuple[str, ...],
    toggle: bool = False,
) -> StepSpec:
    async def render(run: Run) -> Screen:
        alerts = await _filtered_alerts(run)
        page = paginate(alerts, run.draft.page, ALERTS_PER_PAGE)
        return Screen(
            templates.alert_list_text(title(run), page.items, page.page, page.total_pages),
            keyboards.alert_list(page, item_prefix, page_prefix, toggle=toggle),
        )

    async def on_callback(run: Run, data: str) -> Transition:
        if data.startswith(page_prefix):
            run.draft.page = int(data[len(page_prefix) :])
            return Transition.stay(redraw=True)
        alert = await run.hub.alerts.get_alert(data[len(item_prefix) :])
        if alert is None or alert.user_id != run.user_id:
            return Transition.stay(toast="That alert no longer exists.", redraw=True)
        return await on_item(run, alert)

    return StepSpec(
        render=render,
        accepts=(re.escape(item_prefix) + ".+", re.escape(page_prefix) + r"\d+"),
        on_callback=on_callback,
        owns=owns,
    )


async def _toggle(run: Run, alert: Alert) -> Transition:
    updated = await run.hub.alerts.toggle_alert(alert.id)
    if updated is None:
        return Transition.stay(toast="That alert no longer exists.", redraw=True)
    return Transition.stay(toast="Alert resumed" if updated.active else "Alert paused", redraw=True)


async def _pick_for_delete(run: Run, alert: Alert) -> Transition:
    run.draft.alert_id = alert.id
    return Transition.advance()


async def _delete_confirm_text(run: Run) -> str:
    alert = await run.hub.alerts.get_alert(run.draft.alert_id or "")
    if alert is None:
        raise NotFoundError("That alert no longer exists.")
    return templates.delete_alert_confirm_text(alert)


async def _delete_alert(run: Run) -> Transition:
    if not await run.hub.alerts.delete_alert(run.draft.alert_id or ""):
        raise NotFoundError("That alert was already deleted.")
    return Transition.finish([Screen("🗑️ Alert deleted.")], toast="Alert deleted")


def _set_filter(run: Run, value: str) -> None:
    run.draft.filter = value
    run.draft.page = 0


DELETE_ALERT = WizardSpec(
    name="delete_alert",
    draft_type=AlertListDraft,
    steps={
        Step.FILTER: choice_step(
            prompt=lambda run: templates.option_prompt("🗑️ Delete Alert", "Which alerts do you want to browse?"),
            prefix="delete_filter_",
            choices=static_choices([("📋 Watchlist", "watchlist"), ("🔎 Discovery", "discovery"), ("All", "all")]),
            apply=_set_filter,
            owns=("filter",),
            selected=lambda run: run.draft.filter,
        ),
        Step.PICK: _alert_page_step(
            title=lambda run: "Select an alert to delete",
            item_prefix="delete_pick_",
            page_prefix="delete_page_",
            on_item=_pick_for_delete,
            owns=("alert_id", "page"),
        ),
        Step.CONFIRM: confirm_step(_delete_confirm_text, "delete_alert_confirm", _delete_alert),
    },
    paths={"main": (Step.FILTER, Step.PICK, Step.CONFIRM)},
    parent=menus.alerts_menu_screen,
)


SHOW_WATCHLIST_ALERTS = WizardSpec(
    name="show_watchlist_alerts",
    draft_type=AlertListDraft,
    steps={
        Step.WATCHLIST: watchlist_step("Show alerts for which watchlist?", include_all=True),
        Step.LIST: _alert_page_step(
            title=lambda run: f"🔔 Alerts · {run.draft.watchlist_name or 'All watchlists'}",
            item_prefix="alert_toggle_",
            page_prefix="alerts_page_",
            on_item=_toggle,
            owns=("page",),
            toggle=True,
        ),
    },
    paths={"main": (Step.WATCHLIST, Step.LIST)},
    parent=menus.alerts_menu_screen,
)


async def _discovery_list_enter(run: Run, preset: dict) -> None:
    run.draft.filter = "discovery"


SHOW_DISCOVERY_ALERTS = WizardSpec(
    name="show_discovery_alerts",
    draft_type=AlertListDraft,
    steps={
        Step.LIST: _alert_page_step(
            title=lambda run: "🔎 Discovery Alerts",
            item_prefix="alert_toggle_",
            page_prefix="alerts_page_",
            on_item=_toggle,
            owns=("page",),
            toggle=True,
        ),
    },
    paths={"main": (Step.LIST,)},
    parent=menus.alerts_menu_screen,
    on_enter=_discovery_list_enter,
)


# ---------------------------------------------------------------------------
# Watchlists
# ---------------------------------------------------------------------------

async def _add_coin_confirm_text(run: Run) -> str:
    return templates.add_coin_confirm_text(run.draft.coin_name or "-", run.draft.watchlist_name or "-")


async def _add_coin(run: Run) -> Transition:
    watchlist = await run.hub.watchlists.add_coin(run.user_id, run.draft.watchlist_id, run.draft.coin_id)
    return Transition.finish([Screen(templates.coin_added_text(run.draft.coin_name, watchlist))], toast="Coin added")


async def _coin_preset(run: Run, preset: dict) -> None:
    await preset_coin(run, preset.get("coin_id"))


ADD_COIN = WizardSpec(
    name="add_coin",
    draft_type=WatchlistDraft,
    steps={
        Step.COIN: coin_step("➕ Which coin do you want to add?"),
        Step.WATCHLIST: watchlist_step("Add it to which watchlist?"),
        Step.CONFIRM: confirm_step(_add_coin_confirm_text, "add_coin_confirm", _add_coin),
    },
    paths={"main": (Step.COIN, Step.WATCHLIST, Step.CONFIRM)},
    parent=menus.watchlist_menu_screen,
    on_enter=_coin_preset,
)


async def _name_render(run: Run) -> Screen:
    return Screen(templates.watchlist_name_prompt(), keyboards.go_back_only())


async def _name_text(run: Run, text: str) -> Transition:
    name = text.strip()
    if not 1 <= len(name) <= 32:
        return Transition.stay(toast="The name must be 1-32 characters.")
    watchlist = await run.hub.watchlists.create_watchlist(run.user_id, name)
    return Transition.finish([Screen(templates.watchlist_created_text(watchlist))])


CREATE_WATCHLIST = WizardSpec(
    name="create_watchlist",
    draft_type=WatchlistDraft,
    steps={Step.NAME: StepSpec(render=_name_render, on_text=_name_text)},
    paths={"main": (Step.NAME,)},
    parent=menus.watchlist_menu_screen,
)


async def _delete_watchlist_text(run: Run) -> str:
    return templates.watchlist_delete_confirm_text(run.draft.watchlist_name or "-")


async def _delete_watchlist(run: Run) -> Transition:
    if not await run.hub.watchlists.delete_watchlist(run.user_id, run.draft.watchlist_id or ""):
        raise NotFoundError("That watchlist no longer exists.")
    return Transition.finish([Screen(f"🗑️ Watchlist <b>{safe_html(run.draft.watchlist_name)}</b> deleted.")])


DELETE_WATCHLIST = WizardSpec(
    name="delete_watchlist",
    draft_type=WatchlistDraft,
    steps={
        Step.PICK: watchlist_step("🗑️ Delete which watchlist?"),
        Step.CONFIRM: confirm_step(_delete_watchlist_text, "delete_watchlist_confirm", _delete_watchlist),
    },
    paths={"main": (Step.PICK, Step.CONFIRM)},
    parent=menus.watchlist_menu_screen,
)


# ---------------------------------------------------------------------------
# Charts and discovery
# ---------------------------------------------------------------------------

async def _chart_screen(run: Run, coin_id: str, coin_name: str, pairing: Pairing, timeframe: TimeFrame) -> Screen:
    png = await run.hub.charts.render_chart(coin_name, pairing, timeframe)
    return Screen(
        templates.chart_caption(coin_name, pairing, timeframe.display_name),
        keyboards.coin_actions(coin_id),
        photo=png,
        fresh=True,
    )


async def _render_chart(run: Run) -> Transition:
    draft: ChartDraft = run.draft
    screen = await _chart_screen(run, draft.coin_id, draft.coin_name, draft.pairing, draft.timeframe)
    return Transition.finish([screen])


CHARTING = WizardSpec(
    name="charting",
    draft_type=ChartDraft,
    steps={
        Step.COIN: coin_step("📈 Which coin do you want to chart?"),
        Step.PAIR_TIME: pair_time_step("Chart settings", on_done=_render_chart),
    },
    paths={"main": (Step.COIN, Step.PAIR_TIME)},
    parent=menus.main_menu_screen,
    on_enter=_coin_preset,
)


def _discovery_query(run: Run) -> DiscoveryQuery:
    draft: DiscoveryDraft = run.draft
    return DiscoveryQuery(
        feature=draft.feature or DiscoveryFeature.STRENGTH,
        timeframe=draft.timeframe or TimeFrame.D1,
        pairing=draft.pairing or Pairing.USD,
        strength=draft.strength,
        indicator=draft.indicator,
        sentiment=draft.sentiment,
        page=draft.page,
        limit=run.hub.settings.discovery_page_size,
    )


async def _results_render(run: Run) -> Screen:
    query = _discovery_query(run)
    page = await run.hub.discovery.get_results(query)
    run.draft.page = page.page
    return Screen(
        templates.discovery_results_text(query, page),
        keyboards.discovery_results(page.items, page.has_prev, page.has_next, page.page),
    )


async def _results_callback(run: Run, data: str) -> Transition:
    if data.startswith("discovery_page_"):
        run.draft.page = int(data[len("discovery_page_") :])
        return Transition.stay(redraw=True)
    query = _discovery_query(run)
    page = await run.hub.discovery.get_results(query)
    screens = [
        await _chart_screen(run, item.coin_id, item.name, query.pairing, query.timeframe) for item in page.items
    ]
    return Transition.stay(screens=screens)


def _set_feature(run: Run, value: str) -> None:
    run.draft.feature = DiscoveryFeature(value)
    run.draft.page = 0


def _setter(name: str) -> Callable[[Run, str], None]:
    def apply(run: Run, value: str) -> None:
        setattr(run.draft, name, value)
        run.draft.page = 0

    return apply


def _discovery_path(draft: DiscoveryDraft) -> str:
    if draft.feature == DiscoveryFeature.STRENGTH:
        return "strength"
    if draft.feature == DiscoveryFeature.AVERAGE:
        return "average"
    if draft.feature == DiscoveryFeature.SIGNALS:
        return "signals"
    return "simple"


async def _discovery_enter(run: Run, preset: dict) -> None:
    if preset.get("feature"):
        run.draft.feature = DiscoveryFeature(preset["feature"])


DISCOVERY = WizardSpec(
    name="discovery",
    draft_type=DiscoveryDraft,
    steps={
        Step.FEATURE: choice_step(
            prompt=lambda run: templates.option_prompt("🔭 Discovery", "What do you want to explore?"),
            prefix="discovery_feature_",
            choices=static_choices([(f.display_name, f.value) for f in DiscoveryFeature]),
            apply=_set_feature,
            owns=("feature",),
            selected=lambda run: run.draft.feature.value if run.draft.feature else None,
        ),
        Step.STRENGTH: choice_step(
            prompt=lambda run: templates.option_prompt("🏆 Strength", "Show the strongest or the weakest coins?"),
            prefix="strength_",
            choices=static_choices([(s.title(), s) for s in STRENGTH_CHOICES]),
            apply=_setter("strength"),
            owns=("strength",),
            selected=lambda run: run.draft.strength,
        ),
        Step.INDICATOR: choice_step(
            prompt=lambda run: templates.option_prompt("📐 Indicator", "Rank coins by which indicator?"),
            prefix="indicator_",
            choices=static_choices([(label, column) for label, column in INDICATOR_COLUMNS.items()]),
            apply=_setter("indicator"),
            owns=("indicator",),
            selected=lambda run: run.draft.indicator,
        ),
        Step.SENTIMENT: choice_step(
            prompt=lambda run: templates.option_prompt("🔄 Latest Signals", "Which trend transition?"),
            prefix="sentiment_",
            choices=static_choices([(s.replace("_to_", " → ").title(), s) for s in SENTIMENT_CHOICES]),
            apply=_setter("sentiment"),
            owns=("sentiment",),
            selected=lambda run: run.draft.sentiment,
        ),
        Step.PAIR_TIME: pair_time_step("Pairing & timeframe"),
        Step.RESULTS: StepSpec(
            render=_results_render,
            accepts=(r"discovery_page_\d+", r"discovery_charts"),
            on_callback=_results_callback,
            owns=("page",),
        ),
    },
    paths={
        "strength": (Step.FEATURE, Step.STRENGTH, Step.PAIR_TIME, Step.RESULTS),
        "average": (Step.FEATURE, Step.INDICATOR, Step.PAIR_TIME, Step.RESULTS),
        "signals": (Step.FEATURE, Step.INDICATOR, Step.SENTIMENT, Step.PAIR_TIME, Step.RESULTS),
        "simple": (Step.FEATURE, Step.PAIR_TIME, Step.RESULTS),
    },
    parent=menus.discover_menu_screen,
    choose_path=_discovery_path,
    on_enter=_discovery_enter,
)


WIZARDS: dict[str, WizardSpec] = {
    spec.name: spec
    for spec in (
        CREATE_ALERT,
        MARKET_TRANSITION_ALERT,
        LEVEL_BREAK_ALERT,
        DISCOVERY_ALERT,
        DELETE_ALERT,
        SHOW_WATCHLIST_ALERTS,
        SHOW_DISCOVERY_ALERTS,
        ADD_COIN,
        CREATE_WATCHLIST,
        DELETE_WATCHLIST,
        CHARTING,
        DISCOVERY,
    )
}
