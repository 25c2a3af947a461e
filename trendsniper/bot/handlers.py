from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.types import BufferedInputFile, CallbackQuery, Message

from trendsniper.bot import menus, templates
from trendsniper.bot.keyboards import GO_BACK
from trendsniper.bot.wizard import Reply, Screen, WizardEngine
from trendsniper.core.container import ServiceHub

router = Router()
logger = logging.getLogger(__name__)

MENU_SCREENS = {
    "sub_menu": menus.sub_menu_screen,
    "alerts_menu": menus.alerts_menu_screen,
    "discover_menu": menus.discover_menu_screen,
    "watchlist_menu": menus.watchlist_menu_screen,
    "alert_settings": menus.alert_settings_screen,
    "show_all_alerts": menus.all_alerts_screen,
}

# callback -> (wizard, preset)
WIZARD_ENTRIES: dict[str, tuple[str, dict]] = {
    "start_wizard": ("charting", {}),
    "create_alert": ("create_alert", {}),
    "create_discovery_alert": ("discovery_alert", {}),
    "create_market_transition_alert": ("market_transition_alert", {}),
    "create_level_break_alert": ("level_break_alert", {}),
    "delete_alert": ("delete_alert", {}),
    "show_watchlist": ("show_watchlist_alerts", {}),
    "show_discovery_alerts": ("show_discovery_alerts", {}),
    "create_watchlist": ("create_watchlist", {}),
    "delete_watchlist": ("delete_watchlist", {}),
    "add_coin": ("add_coin", {}),
    "discovery_wizard": ("discovery", {}),
    "strength_wizard": ("discovery", {"feature": "strength"}),
    "latest_signals_wizard": ("discovery", {"feature": "signals"}),
}

# coin action buttons under charts and discovery results
COIN_ENTRIES = (
    ("chart_", "charting"),
    ("watchlist_add_", "add_coin"),
    ("alert_set_", "create_alert"),
)


def _user_id(event: Message | CallbackQuery) -> str:
    user = event.from_user
    return str(user.id) if user else "0"


async def _send(message: Message, screen: Screen) -> None:
    if screen.photo is not None:
        await message.answer_photo(
            BufferedInputFile(screen.photo, filename="chart.png"),
            caption=screen.text,
            reply_markup=screen.markup,
        )
        return
    await message.answer(screen.text, reply_markup=screen.markup)


async def _deliver(message: Message, screens: list[Screen], edit: bool) -> None:
    """Edit the triggering message with the first regular screen, send the rest."""
    for screen in screens:
        if edit and not screen.fresh and screen.photo is None:
            edit = False
            try:
                await message.edit_text(screen.text, reply_markup=screen.markup)
                continue
            except TelegramBadRequest as exc:
                if "message is not modified" in str(exc):
                    continue
                logger.info("edit_fallback", extra={"event": "edit_fallback", "chat_id": message.chat.id, "error": str(exc)})
        await _send(message, screen)


async def _reply_to_callback(callback: CallbackQuery, reply: Reply) -> None:
    await callback.answer(reply.toast, show_alert=reply.alert)
    if isinstance(callback.message, Message) and reply.screens:
        await _deliver(callback.message, reply.screens, edit=True)


async def _reply_to_message(message: Message, reply: Reply) -> None:
    if reply.toast:
        await message.answer(reply.toast)
    await _deliver(message, reply.screens, edit=False)


async def _enter_from_message(
    message: Message,
    engine: WizardEngine,
    name: str,
    command: CommandObject | None = None,
) -> None:
    """Start a wizard; command arguments are fed in as the first text answer."""
    chat_id, user_id = message.chat.id, _user_id(message)
    reply = await engine.enter(chat_id, user_id, name)
    query = (command.args or "").strip() if command else ""
    if query and await engine.active(chat_id) is not None:
        follow = await engine.handle_text(chat_id, user_id, query)
        if follow is not None:
            reply = follow
    await _reply_to_message(message, reply)


@router.message(Command("start"))
async def start_cmd(message: Message, hub: ServiceHub, engine: WizardEngine) -> None:
    await engine.cancel(message.chat.id)
    first_name = message.from_user.first_name if message.from_user else None
    screen = await menus.main_menu_screen(hub, _user_id(message), first_name)
    await message.answer(screen.text, reply_markup=screen.markup)


@router.message(Command("cancel"))
async def cancel_cmd(message: Message, hub: ServiceHub, engine: WizardEngine) -> None:
    cancelled = await engine.cancel(message.chat.id)
    await message.answer("Cancelled." if cancelled else "Nothing to cancel.")
    screen = await menus.main_menu_screen(hub, _user_id(message))
    await message.answer(screen.text, reply_markup=screen.markup)


async def _menu_from_command(message: Message, hub: ServiceHub, engine: WizardEngine, key: str) -> None:
    await engine.cancel(message.chat.id)
    screen = await MENU_SCREENS[key](hub, _user_id(message))
    await message.answer(screen.text, reply_markup=screen.markup)


@router.message(Command("watchlist"))
async def watchlist_cmd(message: Message, hub: ServiceHub, engine: WizardEngine) -> None:
    await _menu_from_command(message, hub, engine, "watchlist_menu")


@router.message(Command("alerts"))
async def alerts_cmd(message: Message, hub: ServiceHub, engine: WizardEngine) -> None:
    await _menu_from_command(message, hub, engine, "alerts_menu")


@router.message(Command("discover"))
async def discover_cmd(message: Message, hub: ServiceHub, engine: WizardEngine) -> None:
    await _menu_from_command(message, hub, engine, "discover_menu")


@router.message(Command("analysis"))
async def analysis_cmd(message: Message, command: CommandObject, engine: WizardEngine) -> None:
    await _enter_from_message(message, engine, "charting", command)


@router.message(Command("addcoin"))
async def addcoin_cmd(message: Message, command: CommandObject, engine: WizardEngine) -> None:
    await _enter_from_message(message, engine, "add_coin", command)


@router.message(Command("addalert"))
async def addalert_cmd(message: Message, engine: WizardEngine) -> None:
    await _enter_from_message(message, engine, "create_alert")


@router.callback_query(F.data == "main_menu")
async def main_menu_cb(callback: CallbackQuery, hub: ServiceHub, engine: WizardEngine) -> None:
    if isinstance(callback.message, Message):
        await engine.cancel(callback.message.chat.id)
    first_name = callback.from_user.first_name if callback.from_user else None
    screen = await menus.main_menu_screen(hub, _user_id(callback), first_name)
    await _reply_to_callback(callback, Reply(screens=[screen]))


@router.callback_query(F.data.in_(MENU_SCREENS))
async def menu_cb(callback: CallbackQuery, hub: ServiceHub, engine: WizardEngine) -> None:
    if isinstance(callback.message, Message):
        await engine.cancel(callback.message.chat.id)
    screen = await MENU_SCREENS[callback.data](hub, _user_id(callback))
    await _reply_to_callback(callback, Reply(screens=[screen]))


@router.callback_query(F.data.in_(WIZARD_ENTRIES))
async def wizard_entry_cb(callback: CallbackQuery, engine: WizardEngine) -> None:
    if not isinstance(callback.message, Message):
        await callback.answer(templates.STALE_BUTTON)
        return
    name, preset = WIZARD_ENTRIES[callback.data]
    reply = await engine.enter(callback.message.chat.id, _user_id(callback), name, preset)
    await _reply_to_callback(callback, reply)


@router.callback_query(F.data.startswith(tuple(prefix for prefix, _ in COIN_ENTRIES)))
async def coin_entry_cb(callback: CallbackQuery, engine: WizardEngine) -> None:
    if not isinstance(callback.message, Message):
        await callback.answer(templates.STALE_BUTTON)
        return
    data = callback.data or ""
    for prefix, name in COIN_ENTRIES:
        if data.startswith(prefix):
            preset = {"coin_id": data[len(prefix) :]}
            reply = await engine.enter(callback.message.chat.id, _user_id(callback), name, preset)
            # keep the chart photo in place
            for screen in reply.screens:
                screen.fresh = True
            await _reply_to_callback(callback, reply)
            return


@router.callback_query()
async def wizard_cb(callback: CallbackQuery, hub: ServiceHub, engine: WizardEngine) -> None:
    if not isinstance(callback.message, Message):
        await callback.answer(templates.STALE_BUTTON)
        return
    data = callback.data or ""
    reply = await engine.handle_callback(callback.message.chat.id, _user_id(callback), data)
    if reply is None:
        if data == GO_BACK:
            reply = Reply(screens=[await menus.main_menu_screen(hub, _user_id(callback))])
        else:
            reply = Reply(toast=templates.STALE_BUTTON)
    await _reply_to_callback(callback, reply)


@router.message(F.text)
async def wizard_text(message: Message, engine: WizardEngine) -> None:
    reply = await engine.handle_text(message.chat.id, _user_id(message), message.text or "")
    if reply is None:
        await message.answer(templates.NO_WIZARD_HINT)
        return
    await _reply_to_message(message, reply)
