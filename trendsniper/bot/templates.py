from __future__ import annotations

from trendsniper.core.fmt import fmt_big, fmt_price, fmt_threshold, safe_html
from trendsniper.services.models import (
    Alert,
    AlertCategory,
    AlertLimits,
    AlertsSummary,
    AlertType,
    CoinMetrics,
    DiscoveryPage,
    DiscoveryQuery,
    Pairing,
    Watchlist,
)

GENERIC_RETRY = "Something went wrong talking to the market service. Please try again."
STALE_BUTTON = "This button is no longer active."
NO_WIZARD_HINT = "Nothing in progress. Use /start to open the menu."

_PERCENT_TYPES = {
    AlertType.PRICE_PERCENTAGE_UP,
    AlertType.PRICE_PERCENTAGE_DOWN,
    AlertType.VOLUME_UP,
    AlertType.VOLUME_DOWN,
}
_PRICE_TYPES = {AlertType.PRICE_UP, AlertType.PRICE_DOWN}


# ---------------------------------------------------------------------------
# Menus
# ---------------------------------------------------------------------------

def main_menu_text(first_name: str | None = None) -> str:
    greeting = f"Hey {safe_html(first_name)}!" if first_name else "Welcome to TrendSniper!"
    return "\n".join(
        [
            f"<b>{greeting}</b>",
            "",
            "Spot trends early, track your watchlists and get alerted when the market moves.",
            "Choose an option:",
        ]
    )


def sub_menu_text() -> str:
    return "<b>More tools</b>\nCharts, discovery and quick watchlist edits."


def alerts_menu_text(summary: AlertsSummary, limits: AlertLimits) -> str:
    lines = [
        "🔔 <b>Alerts Menu</b>",
        "",
        "<b>🗂️ Overview</b>",
        f"• Total alerts: {summary.total} ({summary.active} active)",
        f"• Watchlist alerts: {summary.watchlist}",
        f"• Discovery alerts: {summary.discovery}",
        "",
        "<b>⬇️ Limits</b>",
        f"• Watchlist alerts: {limits.watchlist} per watchlist",
        f"• Discovery alerts: {summary.remaining_discovery}/{limits.discovery} remaining",
        "",
        "Manage your price and indicator alerts below:",
    ]
    return "\n".join(lines)


def alert_settings_text(limits: AlertLimits) -> str:
    return "\n".join(
        [
            "🔧 <b>Alert Settings</b>",
            "",
            f"Up to {limits.watchlist} alerts per watchlist, {limits.discovery} discovery alerts",
            f"and {limits.indicators} indicators per discovery alert.",
            "Pause or resume alerts from the lists below.",
        ]
    )


def discover_menu_text() -> str:
    return "\n".join(
        [
            "🔍 <b>Discover Menu</b>",
            "",
            "Explore new opportunities and analyze market trends:",
            "• Strongest and weakest coins per timeframe",
            "• Latest trend transition signals",
            "• Volume divergences and market cap leaders",
        ]
    )


def watchlist_menu_text(watchlists: list[Watchlist]) -> str:
    lines = ["📋 <b>Your Watchlists</b>", ""]
    if not watchlists:
        lines.append("No watchlists yet.")
    for wl in watchlists:
        coins = ", ".join(safe_html(c) for c in wl.coin_ids) or "empty"
        lines.append(f"• <b>{safe_html(wl.name)}</b> ({len(wl.coin_ids)}): {coins}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Wizard prompts
# ---------------------------------------------------------------------------

def coin_search_prompt(title: str) -> str:
    return f"<b>{safe_html(title)}</b>\n\nSend a coin name or symbol (e.g. <code>bitcoin</code> or <code>ETH</code>)."


def coin_search_results_text(query: str, page: int, total_pages: int) -> str:
    return "\n".join(
        [
            f"No exact match for <code>{safe_html(query)}</code>.",
            "Pick a coin below or send another query.",
            f"<i>Page {page + 1}/{total_pages}</i>",
        ]
    )


def alert_kind_prompt() -> str:
    return "\n".join(
        [
            "➕ <b>New Alert</b>",
            "",
            "<b>Watchlist alerts</b> track price and volume moves of a coin in one of your watchlists.",
            "<b>Discovery alerts</b> watch the whole market for indicator signals.",
        ]
    )


def watchlist_prompt(action: str) -> str:
    return f"📋 <b>{safe_html(action)}</b>\n\nChoose a watchlist:"


def alert_type_prompt(category: AlertCategory | None) -> str:
    kind = "discovery" if category == AlertCategory.DISCOVERY else "watchlist"
    return f"🔔 <b>Alert type</b>\n\nWhat should this {kind} alert watch for?"


def threshold_prompt(alert_type: AlertType | None, coin_name: str | None) -> str:
    target = f" for <b>{safe_html(coin_name)}</b>" if coin_name else ""
    if alert_type in _PRICE_TYPES:
        hint = "Send the target price, e.g. <code>50000</code>."
    elif alert_type in _PERCENT_TYPES:
        hint = "Send the percentage change, e.g. <code>5</code> for 5%."
    else:
        hint = "Send the indicator level, e.g. <code>70</code>."
    name = alert_type.display_name if alert_type else "Alert"
    return f"🎯 <b>{name}</b>{target}\n\n{hint}"


def option_prompt(title: str, body: str) -> str:
    return f"<b>{safe_html(title)}</b>\n\n{body}"


def message_prompt() -> str:
    return "✏️ <b>Custom message</b>\n\nSend a note to include in the notification, or skip."


def multi_picker_prompt(title: str, selected: tuple[str, ...], limit: int) -> str:
    chosen = ", ".join(safe_html(s) for s in selected) if selected else "none"
    return f"<b>{safe_html(title)}</b>\n\nChoose up to {limit}.\nSelected: {chosen}"


def pair_time_prompt(title: str) -> str:
    return f"<b>{safe_html(title)}</b>\n\nPick a pairing and a timeframe, then press Choose."


def alert_summary_lines(
    *,
    alert_type: AlertType | None,
    coin_name: str | None = None,
    watchlist_name: str | None = None,
    threshold: float | None = None,
    timeframe_name: str | None = None,
    pairing: Pairing | None = None,
    indicators: list[str] | None = None,
    variant: str | None = None,
    message: str | None = None,
) -> list[str]:
    lines = [f"Type: <b>{alert_type.display_name if alert_type else '-'}</b>"]
    if variant:
        lines.append(f"Condition: {safe_html(variant)}")
    if coin_name:
        lines.append(f"Coin: {safe_html(coin_name)}")
    if watchlist_name:
        lines.append(f"Watchlist: {safe_html(watchlist_name)}")
    if threshold is not None:
        suffix = "%" if alert_type in _PERCENT_TYPES else ""
        lines.append(f"Threshold: <code>{fmt_threshold(threshold)}{suffix}</code>")
    if indicators:
        lines.append(f"Indicators: {', '.join(safe_html(i) for i in indicators)}")
    if timeframe_name:
        lines.append(f"Timeframe: {timeframe_name}")
    if pairing:
        lines.append(f"Pairing: {pairing.value}")
    if message:
        lines.append(f"Message: <i>{safe_html(message)}</i>")
    return lines


def alert_confirm_text(lines: list[str]) -> str:
    return "\n".join(["📝 <b>Review your alert</b>", "", *lines, "", "Create this alert?"])


def alert_created_text(alert: Alert) -> str:
    lines = alert_summary_lines(
        alert_type=alert.alert_type,
        coin_name=alert.coin_name,
        watchlist_name=alert.watchlist_name,
        threshold=alert.threshold,
        timeframe_name=alert.timeframe.display_name,
        pairing=alert.pairing,
        indicators=alert.indicators,
        variant=alert.variant,
        message=alert.message,
    )
    return "\n".join(["🔔 <b>Alert created</b>", "", *lines, "", f"<i>id {safe_html(alert.id)}</i>"])


def alert_line(alert: Alert) -> str:
    status = "🟢" if alert.active else "⏸"
    threshold = f" @ {fmt_threshold(alert.threshold)}" if alert.threshold is not None else ""
    variant = f" ({safe_html(alert.variant)})" if alert.variant else ""
    return (
        f"{status} <b>{alert.alert_type.display_name}</b>{variant} · {safe_html(alert.target_name)}"
        f"{threshold} · {alert.timeframe.value}/{alert.pairing.value}"
    )


def alert_list_text(title: str, alerts: list[Alert], page: int, total_pages: int) -> str:
    lines = [f"<b>{safe_html(title)}</b>", ""]
    if not alerts:
        lines.append("No alerts here yet.")
    else:
        lines.extend(alert_line(a) for a in alerts)
        lines.extend(["", f"<i>Page {page + 1}/{total_pages}</i>"])
    return "\n".join(lines)


def delete_alert_confirm_text(alert: Alert) -> str:
    return "\n".join(["🗑️ <b>Delete this alert?</b>", "", alert_line(alert)])


def watchlist_name_prompt() -> str:
    return "🆕 <b>New watchlist</b>\n\nSend a name (1-32 characters)."


def watchlist_created_text(watchlist: Watchlist) -> str:
    return f"✅ Watchlist <b>{safe_html(watchlist.name)}</b> created."


def watchlist_delete_confirm_text(watchlist_name: str) -> str:
    return f"🗑️ Delete watchlist <b>{safe_html(watchlist_name)}</b> and forget its coins?"


def add_coin_confirm_text(coin_name: str, watchlist_name: str) -> str:
    return f"➕ Add <b>{safe_html(coin_name)}</b> to <b>{safe_html(watchlist_name)}</b>?"


def coin_added_text(coin_name: str, watchlist: Watchlist) -> str:
    return f"✅ <b>{safe_html(coin_name)}</b> is now in <b>{safe_html(watchlist.name)}</b> ({len(watchlist.coin_ids)} coins)."


def chart_caption(coin_name: str, pairing: Pairing, timeframe_name: str) -> str:
    return f"📈 <b>{safe_html(coin_name)}</b> / {pairing.value} · {timeframe_name}"


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

def _pct(v: float) -> str:
    return f"{v:+.2f}%"


def _metric_price(item: CoinMetrics, pairing: Pairing) -> str:
    if pairing == Pairing.USD:
        return fmt_price(item.price)
    return f"{item.price:.6g} {pairing.value}"


def discovery_results_text(query: DiscoveryQuery, page: DiscoveryPage) -> str:
    header = f"🔭 <b>{query.feature.display_name}</b> · {query.timeframe.display_name} · {query.pairing.value}"
    lines = [header, ""]
    if not page.items:
        lines.append("No coins match right now. Try another timeframe.")
        return "\n".join(lines)
    start = page.page * page.limit
    for n, item in enumerate(page.items, start=start + 1):
        lines.append(
            f"{n}. <b>{safe_html(item.symbol)}</b> {_metric_price(item, query.pairing)} "
            f"({_pct(item.change_pct)}) · trend {item.trend_score:+.0f} · RSI {item.rsi:.0f}"
        )
        lines.append(
            f"    vol {fmt_big(item.volume)} ({_pct(item.volume_vs_trend)} vs trend) · mcap {fmt_big(item.market_cap)}"
        )
    lines.extend(["", f"<i>Page {page.page + 1}/{page.total_pages}</i>"])
    return "\n".join(lines)
