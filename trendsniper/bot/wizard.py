"""Table-driven wizard step machine.

A wizard is a ``WizardSpec``: a table of ``StepSpec`` keyed by ``Step`` plus
named linear paths through that table. The cursor (``WizardState.step``) and
the typed draft live in the cache between updates, keyed by chat.

Handlers never talk to Telegram directly. They return a ``Transition`` and
the engine turns it into a ``Reply`` that the aiogram layer delivers.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
from dataclasses import MISSING, asdict, dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, ClassVar

from aiogram.types import InlineKeyboardMarkup

from trendsniper.bot import templates
from trendsniper.bot.keyboards import GO_BACK
from trendsniper.core.cache import Cache
from trendsniper.core.errors import BotError, CircuitOpenError, NotFoundError, UpstreamError, ValidationError

if TYPE_CHECKING:
    from trendsniper.core.container import ServiceHub

logger = logging.getLogger(__name__)

WIZARD_FAILED = "⚠️ Something went wrong. Returning to the menu."


class Step(str, Enum):
    KIND = "kind"
    COIN = "coin"
    WATCHLIST = "watchlist"
    TYPE = "type"
    THRESHOLD = "threshold"
    TIMEFRAME = "timeframe"
    PAIRING = "pairing"
    MESSAGE = "message"
    CONFIRM = "confirm"
    TRANSITION = "transition"
    BREAK = "break"
    INDICATORS = "indicators"
    PAIR_TIME = "pair_time"
    FILTER = "filter"
    PICK = "pick"
    LIST = "list"
    NAME = "name"
    FEATURE = "feature"
    STRENGTH = "strength"
    INDICATOR = "indicator"
    SENTIMENT = "sentiment"
    RESULTS = "results"


@dataclass
class Screen:
    text: str
    markup: InlineKeyboardMarkup | None = None
    photo: bytes | None = None
    # always sent as a new message instead of editing the triggering one
    fresh: bool = False


@dataclass
class Reply:
    screens: list[Screen] = field(default_factory=list)
    toast: str | None = None
    alert: bool = False


class Draft:
    """Typed parameter bag of one wizard run.

    Subclasses are dataclasses. ``enum_fields`` maps field names to the enum
    they are restored into when loaded back from the cache.
    """

    enum_fields: ClassVar[dict[str, type[Enum]]] = {}

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Draft:
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        for name, enum_type in cls.enum_fields.items():
            if kwargs.get(name) is not None:
                kwargs[name] = enum_type(kwargs[name])
        return cls(**kwargs)

    @classmethod
    def _default(cls, name: str) -> Any:
        f = next(f for f in fields(cls) if f.name == name)
        if f.default_factory is not MISSING:
            return f.default_factory()
        return f.default

    def is_set(self, name: str) -> bool:
        return getattr(self, name) != self._default(name)

    def reset(self, names: tuple[str, ...]) -> None:
        for name in names:
            setattr(self, name, self._default(name))


class Move(str, Enum):
    ADVANCE = "advance"
    GOTO = "goto"
    STAY = "stay"
    FINISH = "finish"
    LEAVE = "leave"


@dataclass
class Transition:
    move: Move
    target: Step | None = None
    toast: str | None = None
    redraw: bool = False
    screens: list[Screen] = field(default_factory=list)

    @classmethod
    def advance(cls, toast: str | None = None) -> Transition:
        return cls(Move.ADVANCE, toast=toast)

    @classmethod
    def goto(cls, step: Step, toast: str | None = None) -> Transition:
        return cls(Move.GOTO, target=step, toast=toast)

    @classmethod
    def stay(cls, toast: str | None = None, redraw: bool = False, screens: list[Screen] | None = None) -> Transition:
        return cls(Move.STAY, toast=toast, redraw=redraw, screens=screens or [])

    @classmethod
    def finish(cls, screens: list[Screen], toast: str | None = None) -> Transition:
        return cls(Move.FINISH, toast=toast, screens=screens)

    @classmethod
    def leave(cls, toast: str | None = None) -> Transition:
        return cls(Move.LEAVE, toast=toast)


@dataclass
class WizardState:
    wizard: str
    step: Step
    path: str
    draft: Draft

    def to_dict(self) -> dict[str, Any]:
        return {"wizard": self.wizard, "step": self.step.value, "path": self.path, "draft": self.draft.to_dict()}


@dataclass
class Run:
    """Everything a step handler sees for one update."""

    hub: ServiceHub
    spec: WizardSpec
    state: WizardState
    chat_id: int
    user_id: str

    @property
    def draft(self) -> Any:
        return self.state.draft


Render = Callable[[Run], Awaitable[Screen]]
CallbackHandler = Callable[[Run, str], Awaitable[Transition]]
TextHandler = Callable[[Run, str], Awaitable[Transition]]
ParentMenu = Callable[["ServiceHub", str], Awaitable[Screen]]


@dataclass(frozen=True)
class StepSpec:
    render: Render
    # full-match regexes of the callbacks this step answers
    accepts: tuple[str, ...] = ()
    on_callback: CallbackHandler | None = None
    on_text: TextHandler | None = None
    # draft fields this step produces; cleared when navigating back out of it.
    # The first one marks the step as already answered (presets skip it).
    owns: tuple[str, ...] = ()

    def matches(self, data: str) -> bool:
        return any(re.fullmatch(pattern, data) for pattern in self.accepts)

    def filled(self, draft: Draft) -> bool:
        return bool(self.owns) and draft.is_set(self.owns[0])


@dataclass(frozen=True)
class WizardSpec:
    name: str
    draft_type: type[Draft]
    steps: dict[Step, StepSpec]
    paths: dict[str, tuple[Step, ...]]
    parent: ParentMenu
    choose_path: Callable[[Any], str] | None = None
    on_enter: Callable[[Run, dict], Awaitable[None]] | None = None

    def path_for(self, draft: Draft) -> str:
        if self.choose_path is None:
            return next(iter(self.paths))
        return self.choose_path(draft)


class WizardStore:
    def __init__(self, cache: Cache, specs: dict[str, WizardSpec], ttl: int = 900) -> None:
        self.cache = cache
        self.specs = specs
        self.ttl = ttl

    @staticmethod
    def _key(chat_id: int) -> str:
        return f"wizard:{chat_id}"

    async def get(self, chat_id: int) -> WizardState | None:
        payload = await self.cache.get_json(self._key(chat_id))
        if not payload:
            return None
        spec = self.specs.get(str(payload.get("wizard")))
        if spec is None:
            await self.clear(chat_id)
            return None
        try:
            return WizardState(
                wizard=spec.name,
                step=Step(payload["step"]),
                path=str(payload["path"]),
                draft=spec.draft_type.from_dict(payload.get("draft") or {}),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("wizard_state_corrupt", extra={"event": "wizard_state_corrupt", "chat_id": chat_id})
            await self.clear(chat_id)
            return None

    async def set(self, chat_id: int, state: WizardState) -> None:
        await self.cache.set_json(self._key(chat_id), state.to_dict(), ttl=self.ttl)

    async def clear(self, chat_id: int) -> None:
        await self.cache.delete(self._key(chat_id))


class WizardEngine:
    """Runs wizards; updates from one chat are applied one at a time."""

    locks_max = 2000

    def __init__(self, hub: ServiceHub, specs: dict[str, WizardSpec], store: WizardStore) -> None:
        self.hub = hub
        self.specs = specs
        self.store = store
        self._locks: dict[int, asyncio.Lock] = {}

    def _chat_lock(self, chat_id: int) -> asyncio.Lock:
        lock = self._locks.get(chat_id)
        if lock is None:
            # prune idle locks so the dict stays bounded
            if len(self._locks) >= self.locks_max:
                idle = [k for k, v in list(self._locks.items()) if not v.locked()]
                for k in idle[: len(idle) // 2 + 1]:
                    self._locks.pop(k, None)
            lock = asyncio.Lock()
            self._locks[chat_id] = lock
        return lock

    def _log(self, event: str, run: Run, **extra: Any) -> None:
        logger.info(
            event,
            extra={"event": event, "chat_id": run.chat_id, "wizard": run.spec.name, "step": run.state.step.value, **extra},
        )

    async def active(self, chat_id: int) -> WizardState | None:
        return await self.store.get(chat_id)

    async def _load(self, chat_id: int, user_id: str) -> Run | None:
        state = await self.store.get(chat_id)
        if state is None:
            return None
        return Run(self.hub, self.specs[state.wizard], state, chat_id, user_id)

    async def _render(self, run: Run) -> Screen:
        return await run.spec.steps[run.state.step].render(run)

    async def _parent(self, run: Run, fresh: bool = False) -> Screen:
        screen = await run.spec.parent(self.hub, run.user_id)
        screen.fresh = fresh
        return screen

    async def enter(self, chat_id: int, user_id: str, name: str, preset: dict | None = None) -> Reply:
        spec = self.specs[name]
        draft = spec.draft_type()
        path = spec.path_for(draft)
        state = WizardState(wizard=name, step=spec.paths[path][0], path=path, draft=draft)
        run = Run(self.hub, spec, state, chat_id, user_id)

        async def start() -> Reply:
            if spec.on_enter is not None:
                await spec.on_enter(run, preset or {})
            state.path = spec.path_for(state.draft)
            steps = spec.paths[state.path]
            state.step = next((s for s in steps if not spec.steps[s].filled(state.draft)), steps[-1])
            await self.store.set(chat_id, state)
            self._log("wizard_entered", run)
            return Reply(screens=[await self._render(run)])

        async with self._chat_lock(chat_id):
            return await self._guard(run, start)

    async def cancel(self, chat_id: int) -> bool:
        async with self._chat_lock(chat_id):
            state = await self.store.get(chat_id)
            if state is None:
                return False
            await self.store.clear(chat_id)
        logger.info("wizard_cancelled", extra={"event": "wizard_cancelled", "chat_id": chat_id, "wizard": state.wizard})
        return True

    async def _screens(self, run: Run) -> Reply:
        return Reply(screens=[await self._render(run)])

    async def go_back(self, chat_id: int, user_id: str) -> Reply | None:
        async with self._chat_lock(chat_id):
            return await self._go_back(chat_id, user_id)

    async def _go_back(self, chat_id: int, user_id: str) -> Reply | None:
        run = await self._load(chat_id, user_id)
        if run is None:
            return None
        return await self._guard(run, lambda: self._back(run))

    async def handle_callback(self, chat_id: int, user_id: str, data: str) -> Reply | None:
        async with self._chat_lock(chat_id):
            if data == GO_BACK:
                return await self._go_back(chat_id, user_id)
            run = await self._load(chat_id, user_id)
            if run is None:
                return None
            step = run.spec.steps[run.state.step]
            if step.on_callback is None or not step.matches(data):
                self._log("wizard_stale_callback", run)
                return Reply(toast=templates.STALE_BUTTON)
            handler = step.on_callback
            return await self._guard(run, lambda: self._apply(run, handler(run, data)))

    async def handle_text(self, chat_id: int, user_id: str, text: str) -> Reply | None:
        async with self._chat_lock(chat_id):
            run = await self._load(chat_id, user_id)
            if run is None:
                return None
            step = run.spec.steps[run.state.step]
            if step.on_text is None:
                return Reply(toast="Please use the buttons above.")
            handler = step.on_text
            return await self._guard(run, lambda: self._apply(run, handler(run, text)))

    async def _apply(self, run: Run, pending: Awaitable[Transition]) -> Reply:
        transition = await pending
        state, spec = run.state, run.spec

        if transition.move in (Move.FINISH, Move.LEAVE):
            await self.store.clear(run.chat_id)
            self._log("wizard_finished" if transition.move == Move.FINISH else "wizard_left", run)
            if transition.move == Move.FINISH:
                return Reply(screens=[*transition.screens, await self._parent(run, fresh=True)], toast=transition.toast)
            return Reply(screens=[await self._parent(run)], toast=transition.toast)

        state.path = spec.path_for(state.draft)
        steps = spec.paths[state.path]
        if transition.move == Move.ADVANCE:
            state.step = steps[steps.index(state.step) + 1]
        elif transition.move == Move.GOTO and transition.target is not None:
            if transition.target not in steps:
                raise ValueError(f"{transition.target} is not on path {state.path}")
            state.step = transition.target
        await self.store.set(run.chat_id, state)

        if transition.move == Move.STAY and not transition.redraw:
            return Reply(screens=transition.screens, toast=transition.toast)
        if transition.move != Move.STAY:
            self._log("wizard_step", run)
        return Reply(screens=[await self._render(run), *transition.screens], toast=transition.toast)

    async def _back(self, run: Run, toast: str | None = None) -> Reply:
        state, spec = run.state, run.spec
        steps = spec.paths[state.path]
        state.draft.reset(spec.steps[state.step].owns)
        index = steps.index(state.step) if state.step in steps else 0
        if index == 0:
            await self.store.clear(run.chat_id)
            self._log("wizard_left", run)
            return Reply(screens=[await self._parent(run)], toast=toast)
        state.step = steps[index - 1]
        await self.store.set(run.chat_id, state)
        self._log("wizard_back", run)
        return Reply(screens=[await self._render(run)], toast=toast)

    async def _abort(self, run: Run, text: str = WIZARD_FAILED) -> Reply:
        await self.store.clear(run.chat_id)
        return Reply(screens=[Screen(text), await self._parent(run, fresh=True)])

    async def _guard(self, run: Run, action: Callable[[], Awaitable[Reply]]) -> Reply:
        try:
            return await action()
        except UpstreamError as exc:
            logger.warning(
                "wizard_upstream_error",
                extra={"event": "wizard_upstream_error", "chat_id": run.chat_id, "wizard": run.spec.name, "error": str(exc)},
            )
            toast = str(exc) if isinstance(exc, CircuitOpenError) else templates.GENERIC_RETRY
            return await self._recover(run, lambda: self._screens(run), toast)
        except NotFoundError as exc:
            return await self._recover(run, lambda: self._back(run), str(exc))
        except ValidationError as exc:
            return Reply(toast=str(exc))
        except BotError as exc:
            logger.info("wizard_rejected", extra={"event": "wizard_rejected", "chat_id": run.chat_id, "error": str(exc)})
            return await self._abort(run, f"⚠️ {exc}")
        except Exception:  # noqa: BLE001
            logger.exception(
                "wizard_step_failed",
                extra={"event": "wizard_step_failed", "chat_id": run.chat_id, "wizard": run.spec.name, "step": run.state.step.value},
            )
            return await self._abort(run)

    async def _recover(self, run: Run, action: Callable[[], Awaitable[Reply]], toast: str) -> Reply:
        try:
            reply = await action()
        except Exception:  # noqa: BLE001
            logger.exception("wizard_recover_failed", extra={"event": "wizard_recover_failed", "chat_id": run.chat_id})
            return await self._abort(run)
        reply.toast = toast
        reply.alert = True
        return reply


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
