from datetime import datetime, timezone

import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.methods import EditMessageText
from aiogram.types import Chat, InaccessibleMessage, Message

from splitbook.handlers import expenses

edits = []


class EditableMessage(Message):
    async def edit_text(self, text: str, **kwargs):
        edits.append(text)


class UnchangedMessage(Message):
    async def edit_text(self, text: str, **kwargs):
        raise TelegramBadRequest(
            method=EditMessageText(text=text),
            message="Bad Request: message is not modified: specified new message content is exactly the same",
        )


class DeletedMessage(Message):
    async def edit_text(self, text: str, **kwargs):
        raise TelegramBadRequest(method=EditMessageText(text=text), message="Bad Request: message to edit not found")


class DummyCallback:
    def __init__(self, message, data="list:15") -> None:
        self.message = message
        self.data = data
        self.answers = []

    async def answer(self, text=None, show_alert=None):
        self.answers.append((text, show_alert))


def _message(cls):
    return cls.model_construct(
        message_id=1,
        date=datetime(2026, 1, 1, tzinfo=timezone.utc),
        chat=Chat(id=10, type="group"),
    )


@pytest.fixture(autouse=True)
def fake_render(monkeypatch):
    pages = []

    async def render(conversation_id, offset):
        pages.append((conversation_id, offset))
        return "page", None

    monkeypatch.setattr(expenses, "_render_list", render)
    edits.clear()
    return pages


@pytest.mark.asyncio
async def test_list_page_edits_message(fake_render):
    callback = DummyCallback(_message(EditableMessage))

    await expenses.cb_list_page(callback)

    assert fake_render == [(10, 15)]
    assert edits == ["page"]
    assert callback.answers == [(None, None)]


@pytest.mark.asyncio
async def test_list_page_on_inaccessible_message(fake_render):
    callback = DummyCallback(InaccessibleMessage(chat=Chat(id=10, type="group"), message_id=1))

    await expenses.cb_list_page(callback)

    assert fake_render == []
    assert callback.answers == [(expenses.STALE_LIST_TEXT, True)]


@pytest.mark.asyncio
async def test_list_page_unchanged_is_answered():
    callback = DummyCallback(_message(UnchangedMessage))

    await expenses.cb_list_page(callback)

    assert callback.answers == [(None, None)]


@pytest.mark.asyncio
async def test_list_page_other_telegram_errors_propagate():
    callback = DummyCallback(_message(DeletedMessage))

    with pytest.raises(TelegramBadRequest):
        await expenses.cb_list_page(callback)
