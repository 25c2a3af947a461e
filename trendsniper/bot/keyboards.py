from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from trendsniper.bot.coin_search import NEXT_PREFIX, PREV_PREFIX, RETRY, SELECT_PREFIX
from trendsniper.bot.pickers import (
    MULTIPICKER_CHOOSE,
    MULTIPICKER_OPTION,
    PAIR_PREFIX,
    PAIR_TIME_CHOOSE,
    TF_PREFIX,
    PairTimePickerState,
    PickerPage,
    buttons_per_row,
)
from trendsniper.services.models import Alert, CoinMetrics, Pairing, SearchResult, TimeFrame

GO_BACK = "go_back"
CHECK = "✅ "


def go_back_button() -> InlineKeyboardButton:
    return InlineKeyboardButton(text="⬅️ Go Back", callback_data=GO_BACK)


def go_back_only() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.row(go_back_button())
    return kb.as_markup()


def main_menu() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="📈 Chart a Coin", callback_data="start_wizard")
    kb.button(text="🔔 Alerts", callback_data="alerts_menu")
    kb.button(text="🔍 Discover", callback_data="discover_menu")
    kb.button(text="📋 Watchlists", callback_data="watchlist_menu")
    kb.button(text="☰ More", callback_data="sub_menu")
    kb.adjust(1, 2, 2)
    return kb.as_markup()


def sub_menu() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="📈 Start Wizard", callback_data="start_wizard")
    kb.button(text="🔭 Discovery", callback_data="discovery_wizard")
    kb.button(text="➕ Add Coin", callback_data="add_coin")
    kb.adjust(1, 2)
    kb.row(go_back_button())
    return kb.as_markup()


def alerts_menu() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="📋 Show All", callback_data="show_all_alerts")
    kb.button(text="➕ Watchlist Alert", callback_data="create_alert")
    kb.button(text="🔎 Discovery Alert", callback_data="create_discovery_alert")
    kb.button(text="🔄 Market Transitions", callback_data="create_market_transition_alert")
    kb.button(text="📊 Level Breaks", callback_data="create_level_break_alert")
    kb.button(text="🗑️ Delete Alert", callback_data="delete_alert")
    kb.button(text="🔧 Alert Settings", callback_data="alert_settings")
    kb.adjust(1, 2, 2, 2)
    kb.row(go_back_button())
    return kb.as_markup()


def alert_settings_menu() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="📋 Watchlist Alerts", callback_data="show_watchlist")
    kb.button(text="🔎 Discovery Alerts", callback_data="show_discovery_alerts")
    kb.button(text="🗑️ Delete Alert", callback_data="delete_alert")
    kb.adjust(2, 1)
    kb.row(InlineKeyboardButton(text="⬅️ Alerts", callback_data="alerts_menu"))
    return kb.as_markup()


def discover_menu() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="🏆 Strength Analysis", callback_data="strength_wizard")
    kb.button(text="🔄 Latest Signals", callback_data="latest_signals_wizard")
    kb.button(text="🔭 All Discovery Tools", callback_data="discovery_wizard")
    kb.adjust(1)
    kb.row(go_back_button())
    return kb.as_markup()


def watchlist_menu() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="➕ Add Coin", callback_data="add_coin")
    kb.button(text="🔔 Watchlist Alerts", callback_data="show_watchlist")
    kb.button(text="🆕 New Watchlist", callback_data="create_watchlist")
    kb.button(text="🗑️ Delete Watchlist", callback_data="delete_watchlist")
    kb.adjust(2, 2)
    kb.row(go_back_button())
    return kb.as_markup()


def option_picker(options: list[tuple[str, str]], selected: str | None = None) -> InlineKeyboardMarkup:
    """Single-choice picker. ``options`` is a list of (label, callback_data)."""
    labels = [label for label, _ in options]
    extra = len(CHECK) if selected is not None else 0
    kb = InlineKeyboardBuilder()
    for label, data in options:
        prefix = CHECK if data == selected else ""
        kb.button(text=f"{prefix}{label}", callback_data=data)
    kb.adjust(buttons_per_row(labels, extra))
    kb.row(go_back_button())
    return kb.as_markup()


def multi_picker(options: list[str], selected: tuple[str, ...]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for option in options:
        prefix = CHECK if option in selected else ""
        kb.button(text=f"{prefix}{option}", callback_data=f"{MULTIPICKER_OPTION}{option}")
    kb.adjust(buttons_per_row(options, len(CHECK)))
    kb.row(InlineKeyboardButton(text=f"Choose ({len(selected)})", callback_data=MULTIPICKER_CHOOSE))
    kb.row(go_back_button())
    return kb.as_markup()


def pair_time_picker(state: PairTimePickerState) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    pair_buttons = [
        InlineKeyboardButton(
            text=f"{CHECK if p == state.selected_pairing else ''}{p.value}",
            callback_data=f"{PAIR_PREFIX}{p.value}",
        )
        for p in Pairing
    ]
    kb.row(*pair_buttons)
    tf_buttons = [
        InlineKeyboardButton(
            text=f"{CHECK if tf == state.selected_timeframe else ''}{tf.value}",
            callback_data=f"{TF_PREFIX}{tf.value}",
        )
        for tf in TimeFrame
    ]
    kb.row(*tf_buttons[:4])
    kb.row(*tf_buttons[4:])
    kb.row(InlineKeyboardButton(text="Choose", callback_data=PAIR_TIME_CHOOSE))
    kb.row(go_back_button())
    return kb.as_markup()


def confirmation(confirm_data: str, confirm_text: str = "✅ Confirm") -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text=confirm_text, callback_data=confirm_data)
    kb.add(go_back_button())
    kb.adjust(2)
    return kb.as_markup()


def message_step() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Skip", callback_data="message_submit")
    kb.add(go_back_button())
    kb.adjust(2)
    return kb.as_markup()


def coin_search_results(page: PickerPage) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    results: list[SearchResult] = page.items
    for result in results:
        kb.row(
            InlineKeyboardButton(
                text=f"{result.coin.name} ({result.coin.symbol})",
                callback_data=f"{SELECT_PREFIX}{result.coin.id}",
            )
        )
    nav = []
    if page.has_prev:
        nav.append(InlineKeyboardButton(text="◀️ Prev", callback_data=f"{PREV_PREFIX}{page.page - 1}"))
    if page.has_next:
        nav.append(InlineKeyboardButton(text="Next ▶️", callback_data=f"{NEXT_PREFIX}{page.page + 1}"))
    if nav:
        kb.row(*nav)
    kb.row(InlineKeyboardButton(text="🔁 Search again", callback_data=RETRY), go_back_button())
    return kb.as_markup()


def alert_list(
    page: PickerPage,
    item_prefix: str,
    page_prefix: str,
    toggle: bool = False,
) -> InlineKeyboardMarkup:
    """Alerts as buttons. With ``toggle`` each button pauses/resumes instead of picking."""
    kb = InlineKeyboardBuilder()
    alerts: list[Alert] = page.items
    for alert in alerts:
        if toggle:
            label = f"{'⏸ Pause' if alert.active else '▶️ Resume'} {alert.target_name}"
        else:
            label = f"{alert.alert_type.display_name} · {alert.target_name}"
        kb.row(InlineKeyboardButton(text=label, callback_data=f"{item_prefix}{alert.id}"))
    nav = []
    if page.has_prev:
        nav.append(InlineKeyboardButton(text="◀️ Prev", callback_data=f"{page_prefix}{page.page - 1}"))
    if page.has_next:
        nav.append(InlineKeyboardButton(text="Next ▶️", callback_data=f"{page_prefix}{page.page + 1}"))
    if nav:
        kb.row(*nav)
    kb.row(go_back_button())
    return kb.as_markup()


def coin_actions(coin_id: str) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="📈 Chart", callback_data=f"chart_{coin_id}")
    kb.button(text="➕ Watchlist", callback_data=f"watchlist_add_{coin_id}")
    kb.button(text="🔔 Alert", callback_data=f"alert_set_{coin_id}")
    kb.adjust(3)
    return kb.as_markup()


def discovery_results(items: list[CoinMetrics], has_prev: bool, has_next: bool, page: int) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for item in items:
        kb.row(
            InlineKeyboardButton(text=f"📈 {item.symbol}", callback_data=f"chart_{item.coin_id}"),
            InlineKeyboardButton(text="➕", callback_data=f"watchlist_add_{item.coin_id}"),
            InlineKeyboardButton(text="🔔", callback_data=f"alert_set_{item.coin_id}"),
        )
    nav = []
    if has_prev:
        nav.append(InlineKeyboardButton(text="◀️ Prev", callback_data=f"discovery_page_{page - 1}"))
    if has_next:
        nav.append(InlineKeyboardButton(text="Next ▶️", callback_data=f"discovery_page_{page + 1}"))
    if nav:
        kb.row(*nav)
    kb.row(InlineKeyboardButton(text="🖼 Charts for this page", callback_data="discovery_charts"))
    kb.row(go_back_button())
    return kb.as_markup()
