from __future__ import annotations

from dataclasses import dataclass, field, replace

from trendsniper.services.models import Pairing, TimeFrame

MULTIPICKER_OPTION = "multipicker_option_"
MULTIPICKER_CHOOSE = "multipicker_CHOOSE"
PAIR_PREFIX = "cmbpicker_pair_"
TF_PREFIX = "cmbpicker_tf_"
PAIR_TIME_CHOOSE = "cmbpicker_CHOOSE"


def buttons_per_row(labels: list[str], extra: int = 0) -> int:
    """1 per row for long labels, 2 for medium, 3 for short."""
    longest = max((len(label) for label in labels), default=0) + extra
    if longest > 10:
        return 1
    if longest > 6:
        return 2
    return 3


@dataclass(frozen=True)
class MultiPickerState:
    selected_options: tuple[str, ...] = ()
    type: str = ""

    def to_dict(self) -> dict:
        return {"selected_options": list(self.selected_options), "type": self.type}

    @classmethod
    def from_dict(cls, data: dict | None) -> "MultiPickerState":
        data = data or {}
        return cls(selected_options=tuple(data.get("selected_options") or ()), type=str(data.get("type") or ""))


@dataclass(frozen=True)
class MultiPickerResult:
    state: MultiPickerState
    proceed: bool = False
    redraw: bool = False
    notice: str | None = None


def handle_multi_picker(data: str, state: MultiPickerState, options: list[str], limit: int) -> MultiPickerResult:
    if data == MULTIPICKER_CHOOSE:
        if not state.selected_options:
            return MultiPickerResult(state, notice="Select at least one option")
        return MultiPickerResult(state, proceed=True)

    if not data.startswith(MULTIPICKER_OPTION):
        return MultiPickerResult(state)

    option = data[len(MULTIPICKER_OPTION) :]
    if option not in options:
        return MultiPickerResult(state, notice="Option is no longer available")

    selected = list(state.selected_options)
    if option in selected:
        selected.remove(option)
    elif len(selected) >= limit:
        return MultiPickerResult(state, notice=f"Maximum {limit} options allowed")
    else:
        selected.append(option)
    return MultiPickerResult(replace(state, selected_options=tuple(selected)), redraw=True)


@dataclass(frozen=True)
class PairTimePickerState:
    selected_pairing: Pairing | None = None
    selected_timeframe: TimeFrame | None = None

    @property
    def complete(self) -> bool:
        return self.selected_pairing is not None and self.selected_timeframe is not None


@dataclass(frozen=True)
class PairTimePickerResult:
    state: PairTimePickerState
    proceed: bool = False
    redraw: bool = False
    notice: str | None = None


def handle_pair_time_picker(data: str, state: PairTimePickerState) -> PairTimePickerResult:
    if data.startswith(PAIR_PREFIX):
        try:
            pairing = Pairing(data[len(PAIR_PREFIX) :])
        except ValueError:
            return PairTimePickerResult(state, notice="Unknown pairing")
        return PairTimePickerResult(replace(state, selected_pairing=pairing), redraw=True)
    if data.startswith(TF_PREFIX):
        try:
            timeframe = TimeFrame(data[len(TF_PREFIX) :])
        except ValueError:
            return PairTimePickerResult(state, notice="Unknown timeframe")
        return PairTimePickerResult(replace(state, selected_timeframe=timeframe), redraw=True)
    if data == PAIR_TIME_CHOOSE:
        if not state.complete:
            return PairTimePickerResult(state, notice="Pick a pairing and a timeframe first")
        return PairTimePickerResult(state, proceed=True)
    return PairTimePickerResult(state)


@dataclass
class PickerPage:
    """Slice of a long option list with prev/next availability."""

    items: list = field(default_factory=list)
    page: int = 0
    total_pages: int = 1

    @property
    def has_prev(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages


def paginate(items: list, page: int, per_page: int) -> PickerPage:
    per_page = max(1, per_page)
    total_pages = max(1, (len(items) + per_page - 1) // per_page)
    page = min(max(0, page), total_pages - 1)
    return PickerPage(items=items[page * per_page : (page + 1) * per_page], page=page, total_pages=total_pages)
