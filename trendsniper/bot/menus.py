from __future__ import annotations

from aiogram.types import InlineKeyboardButton
from aiogram.utils.keyboard import InlineKeyboardBuilder

from trendsniper.bot import keyboards, templates
from trendsniper.bot.wizard import Screen
from trendsniper.core.container import ServiceHub
from trendsniper.services.models import AlertCategory


async def main_menu_screen(hub: ServiceHub, user_id: str, first_name: str | None = None) -> Screen:
    return Screen(templates.main_menu_text(first_name), keyboards.main_menu())


async def sub_menu_screen(hub: ServiceHub, user_id: str) -> Screen:
    return Screen(templates.sub_menu_text(), keyboards.sub_menu())


async def alerts_menu_screen(hub: ServiceHub, user_id: str) -> Screen:
    summary = await hub.alerts.get_summary(user_id)
    return Screen(templates.alerts_menu_text(summary, hub.alerts.get_limits()), keyboards.alerts_menu())


async def alert_settings_screen(hub: ServiceHub, user_id: str) -> Screen:
    return Screen(templates.alert_settings_text(hub.alerts.get_limits()), keyboards.alert_settings_menu())


async def discover_menu_screen(hub: ServiceHub, user_id: str) -> Screen:
    return Screen(templates.discover_menu_text(), keyboards.discover_menu())


async def watchlist_menu_screen(hub: ServiceHub, user_id: str) -> Screen:
    watchlists = await hub.watchlists.get_watchlists(user_id)
    return Screen(templates.watchlist_menu_text(watchlists), keyboards.watchlist_menu())


async def all_alerts_screen(hub: ServiceHub, user_id: str) -> Screen:
    alerts = await hub.alerts.get_alerts(user_id)
    lines = ["📋 <b>All Alerts</b>", ""]
    for category, title in ((AlertCategory.WATCHLIST, "Watchlist"), (AlertCategory.DISCOVERY, "Discovery")):
        group = [a for a in alerts if a.category == category]
        lines.append(f"<b>{title}</b> ({len(group)})")
        lines.extend(templates.alert_line(a) for a in group)
        if not group:
            lines.append("none")
        lines.append("")
    kb = InlineKeyboardBuilder()
    kb.button(text="📋 Watchlist Alerts", callback_data="show_watchlist")
    kb.button(text="🔎 Discovery Alerts", callback_data="show_discovery_alerts")
    kb.adjust(2)
    kb.row(InlineKeyboardButton(text="⬅️ Alerts", callback_data="alerts_menu"))
    return Screen("\n".join(lines).rstrip(), kb.as_markup())
