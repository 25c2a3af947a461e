"""Reusable step builders shared by the wizards."""

from __future__ import annotations

import math
import re
from typing import Awaitable, Callable

from trendsniper.bot import keyboards, templates
from trendsniper.bot.coin_search import NEXT_PREFIX, PREV_PREFIX, RETRY, SELECT_PREFIX
from trendsniper.bot.pickers import (
    MultiPickerState,
    PairTimePickerState,
    handle_multi_picker,
    handle_pair_time_picker,
    paginate,
)
from trendsniper.bot.wizard import Run, Screen, StepSpec, Transition, maybe_await
from trendsniper.core.errors import NotFoundError
from trendsniper.services.models import Coin, Pairing, SearchResult, TimeFrame
from trendsniper.services.options import OptionsType

Choices = Callable[[Run], Awaitable[list[tuple[str, str]]]]
Apply = Callable[[Run, str], object]
Done = Callable[[Run], Awaitable[Transition]]


def static_choices(options: list[tuple[str, str]]) -> Choices:
    async def choices(run: Run) -> list[tuple[str, str]]:
        return options

    return choices


async def _advance(run: Run) -> Transition:
    return Transition.advance()


def choice_step(
    *,
    prompt: Callable[[Run], str],
    prefix: str,
    choices: Choices,
    apply: Apply,
    owns: tuple[str, ...],
    selected: Callable[[Run], str | None] | None = None,
) -> StepSpec:
    """Single-choice picker. Callback data is ``prefix + value``."""

    async def render(run: Run) -> Screen:
        options = await choices(run)
        current = selected(run) if selected else None
        buttons = [(label, f"{prefix}{value}") for label, value in options]
        return Screen(prompt(run), keyboards.option_picker(buttons, f"{prefix}{current}" if current else None))

    async def on_callback(run: Run, data: str) -> Transition:
        value = data[len(prefix) :]
        if value not in {v for _, v in await choices(run)}:
            return Transition.stay(toast=templates.STALE_BUTTON)
        await maybe_await(apply(run, value))
        return Transition.advance()

    return StepSpec(render=render, accepts=(re.escape(prefix) + ".+",), on_callback=on_callback, owns=owns)


def timeframe_step(title: str = "Timeframe") -> StepSpec:
    def apply(run: Run, value: str) -> None:
        run.draft.timeframe = TimeFrame(value)

    return choice_step(
        prompt=lambda run: templates.option_prompt(title, "Which timeframe should be monitored?"),
        prefix="timeframe_",
        choices=static_choices([(tf.display_name, tf.value) for tf in TimeFrame]),
        apply=apply,
        owns=("timeframe",),
        selected=lambda run: run.draft.timeframe.value if run.draft.timeframe else None,
    )


def pairing_step(title: str = "Pairing") -> StepSpec:
    def apply(run: Run, value: str) -> None:
        run.draft.pairing = Pairing(value)

    return choice_step(
        prompt=lambda run: templates.option_prompt(title, "Quote the price against:"),
        prefix="pairing_",
        choices=static_choices([(p.value, p.value) for p in Pairing]),
        apply=apply,
        owns=("pairing",),
        selected=lambda run: run.draft.pairing.value if run.draft.pairing else None,
    )


def watchlist_step(title: str, include_all: bool = False) -> StepSpec:
    """Pick one of the user's watchlists into ``watchlist_id``/``watchlist_name``."""

    async def choices(run: Run) -> list[tuple[str, str]]:
        watchlists = await run.hub.watchlists.get_watchlists(run.user_id)
        options = [(wl.name, wl.id) for wl in watchlists]
        if include_all:
            options.append(("All watchlists", "all"))
        return options

    async def apply(run: Run, value: str) -> None:
        if value == "all":
            run.draft.watchlist_id, run.draft.watchlist_name = "all", "All watchlists"
            return
        watchlist = await run.hub.watchlists.get_watchlist(run.user_id, value)
        if watchlist is None:
            raise NotFoundError("That watchlist no longer exists.")
        run.draft.watchlist_id, run.draft.watchlist_name = watchlist.id, watchlist.name

    return choice_step(
        prompt=lambda run: templates.watchlist_prompt(title),
        prefix="select_watchlist_",
        choices=choices,
        apply=apply,
        owns=("watchlist_id", "watchlist_name"),
        selected=lambda run: run.draft.watchlist_id,
    )


def _select_coin(run: Run, coin: Coin) -> None:
    run.draft.coin_id = coin.id
    run.draft.coin_name = coin.name
    run.draft.search = None


def coin_step(title: str) -> StepSpec:
    """Free-text coin search with manual picking when the match is weak."""

    async def render(run: Run) -> Screen:
        search = run.draft.search
        if not search:
            return Screen(templates.coin_search_prompt(title), keyboards.go_back_only())
        results = [SearchResult.from_dict(r) for r in search["results"]]
        page = paginate(results, int(search.get("page", 0)), run.hub.coin_search.page_size)
        return Screen(
            templates.coin_search_results_text(search["query"], page.page, page.total_pages),
            keyboards.coin_search_results(page),
        )

    async def on_text(run: Run, text: str) -> Transition:
        query = text.strip()
        if not query:
            return Transition.stay(toast="Send a coin name or symbol.")
        outcome = await run.hub.coin_search.process_search(query)
        if outcome.selected is not None:
            _select_coin(run, outcome.selected)
            return Transition.advance(toast=f"Selected {outcome.selected.name}")
        if not outcome.results:
            run.draft.search = None
            return Transition.stay(toast=f"No coins found for “{query}”. Try another name.")
        run.draft.search = {"query": query, "results": [r.to_dict() for r in outcome.results], "page": 0}
        return Transition.stay(redraw=True)

    async def on_callback(run: Run, data: str) -> Transition:
        search = run.draft.search or {}
        if data == RETRY:
            run.draft.search = None
            return Transition.stay(redraw=True)
        if data.startswith(SELECT_PREFIX):
            coin_id = data[len(SELECT_PREFIX) :]
            for raw in search.get("results", []):
                if raw["coin"]["id"] == coin_id:
                    _select_coin(run, Coin.from_dict(raw["coin"]))
                    return Transition.advance()
            return Transition.stay(toast=templates.STALE_BUTTON)
        if not search:
            return Transition.stay(toast=templates.STALE_BUTTON)
        search["page"] = int(data.rsplit("_", 1)[1])
        run.draft.search = search
        return Transition.stay(redraw=True)

    return StepSpec(
        render=render,
        accepts=(
            re.escape(SELECT_PREFIX) + ".+",
            re.escape(PREV_PREFIX) + r"\d+",
            re.escape(NEXT_PREFIX) + r"\d+",
            re.escape(RETRY),
        ),
        on_callback=on_callback,
        on_text=on_text,
        owns=("coin_id", "coin_name", "search"),
    )


def threshold_step() -> StepSpec:
    async def render(run: Run) -> Screen:
        return Screen(templates.threshold_prompt(run.draft.alert_type, run.draft.coin_name), keyboards.go_back_only())

    async def on_text(run: Run, text: str) -> Transition:
        raw = text.strip().replace(",", "").replace("$", "").rstrip("%").strip()
        try:
            value = float(raw)
        except ValueError:
            return Transition.stay(toast="Please send a number, e.g. 50000.")
        if not math.isfinite(value) or value <= 0:
            return Transition.stay(toast="The threshold must be a positive number.")
        run.draft.threshold = value
        return Transition.advance()

    return StepSpec(render=render, on_text=on_text, owns=("threshold",))


def message_step() -> StepSpec:
    async def render(run: Run) -> Screen:
        return Screen(templates.message_prompt(), keyboards.message_step())

    async def on_text(run: Run, text: str) -> Transition:
        message = text.strip()
        if not message:
            return Transition.stay(toast="Send a message or press Skip.")
        run.draft.message = message[:200]
        return Transition.advance()

    async def on_callback(run: Run, data: str) -> Transition:
        run.draft.message = None
        return Transition.advance()

    return StepSpec(render=render, accepts=("message_submit",), on_callback=on_callback, on_text=on_text, owns=("message",))


def multi_pick_step(title: str, options_type: OptionsType, limit: Callable[[Run], int], owns: str = "indicators") -> StepSpec:
    async def render(run: Run) -> Screen:
        options = await run.hub.options.get_options(options_type)
        selected = tuple(getattr(run.draft, owns))
        return Screen(templates.multi_picker_prompt(title, selected, limit(run)), keyboards.multi_picker(options, selected))

    async def on_callback(run: Run, data: str) -> Transition:
        options = await run.hub.options.get_options(options_type)
        state = MultiPickerState(selected_options=tuple(getattr(run.draft, owns)), type=options_type.value)
        result = handle_multi_picker(data, state, options, limit(run))
        if result.proceed:
            return Transition.advance()
        setattr(run.draft, owns, list(result.state.selected_options))
        return Transition.stay(toast=result.notice, redraw=result.redraw)

    return StepSpec(
        render=render,
        accepts=(r"multipicker_option_.+", r"multipicker_CHOOSE"),
        on_callback=on_callback,
        owns=(owns,),
    )


def pair_time_step(title: str, on_done: Done = _advance) -> StepSpec:
    async def render(run: Run) -> Screen:
        state = PairTimePickerState(run.draft.pairing, run.draft.timeframe)
        return Screen(templates.pair_time_prompt(title), keyboards.pair_time_picker(state))

    async def on_callback(run: Run, data: str) -> Transition:
        state = PairTimePickerState(run.draft.pairing, run.draft.timeframe)
        result = handle_pair_time_picker(data, state)
        run.draft.pairing = result.state.selected_pairing
        run.draft.timeframe = result.state.selected_timeframe
        if result.proceed:
            return await on_done(run)
        return Transition.stay(toast=result.notice, redraw=result.redraw)

    return StepSpec(
        render=render,
        accepts=(r"cmbpicker_pair_\w+", r"cmbpicker_tf_\w+", r"cmbpicker_CHOOSE"),
        on_callback=on_callback,
        owns=("pairing", "timeframe"),
    )


def confirm_step(render_text: Callable[[Run], Awaitable[str]], confirm_data: str, on_confirm: Done) -> StepSpec:
    async def render(run: Run) -> Screen:
        return Screen(await render_text(run), keyboards.confirmation(confirm_data))

    async def on_callback(run: Run, data: str) -> Transition:
        return await on_confirm(run)

    return StepSpec(render=render, accepts=(re.escape(confirm_data),), on_callback=on_callback)


async def preset_coin(run: Run, coin_id: str | None) -> None:
    if not coin_id:
        return
    coin = await run.hub.coins.get_coin(coin_id)
    if coin is None:
        raise NotFoundError("That coin is not in the catalog.")
    _select_coin(run, coin)
