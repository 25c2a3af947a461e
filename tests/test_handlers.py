from __future__ import annotations

import pytest

from trendsniper.bot.handlers import _deliver
from trendsniper.bot.wizard import Screen


class DummyChat:
    id = 42


class DummyMessage:
    chat = DummyChat()

    def __init__(self) -> None:
        self.edited: list[str] = []
        self.sent: list[str] = []
        self.photos: list[str] = []

    async def edit_text(self, text: str, reply_markup=None) -> None:
        self.edited.append(text)

    async def answer(self, text: str, reply_markup=None) -> None:
        self.sent.append(text)

    async def answer_photo(self, photo, caption: str | None = None, reply_markup=None) -> None:
        self.photos.append(caption or "")


@pytest.mark.asyncio
async def test_first_screen_edits_and_rest_are_sent() -> None:
    message = DummyMessage()
    await _deliver(message, [Screen("step"), Screen("menu")], edit=True)
    assert message.edited == ["step"]
    assert message.sent == ["menu"]


@pytest.mark.asyncio
async def test_fresh_and_photo_screens_are_never_edits() -> None:
    message = DummyMessage()
    screens = [Screen("chart", photo=b"\x89PNG", fresh=True), Screen("done", fresh=True), Screen("menu")]
    await _deliver(message, screens, edit=True)
    assert message.photos == ["chart"]
    assert message.sent == ["done"]
    assert message.edited == ["menu"]


@pytest.mark.asyncio
async def test_text_replies_never_edit() -> None:
    message = DummyMessage()
    await _deliver(message, [Screen("a"), Screen("b")], edit=False)
    assert message.edited == []
    assert message.sent == ["a", "b"]
