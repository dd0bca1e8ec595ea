from __future__ import annotations

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from splitbook.config import get_settings
from splitbook.keyboards import LIST_CALLBACK_PREFIX, build_list_keyboard
from splitbook.services.formatter import format_balance, format_list_expenses
from splitbook.state import registry
from splitbook.utils.parse import parse_expense_id, parse_offset

expenses_router = Router()

STALE_LIST_TEXT = "This list is too old to browse, send /list again"


async def _render_list(conversation_id: int, offset: int):
    settings = get_settings()
    ledger = registry.ledger(conversation_id)
    expenses, has_more = await ledger.list_expenses(settings.list_page_size, offset)
    text = format_list_expenses(expenses, settings.zoneinfo)
    return text, build_list_keyboard(offset, settings.list_page_size, has_more)


@expenses_router.message(Command("expense", "e", ignore_case=True))
async def cmd_expense(message: Message, command: CommandObject) -> None:
    ledger = registry.ledger(message.chat.id)
    await ledger.add_expense(command.args or "", created_at=message.date)


@expenses_router.message(Command("list", "l", ignore_case=True))
async def cmd_list(message: Message) -> None:
    text, keyboard = await _render_list(message.chat.id, 0)
    await message.answer(text, reply_markup=keyboard)


@expenses_router.callback_query(F.data.startswith(f"{LIST_CALLBACK_PREFIX}:"))
async def cb_list_page(callback: CallbackQuery) -> None:
    # Telegram only hands out old messages as InaccessibleMessage, which cannot be edited
    if not isinstance(callback.message, Message) or callback.data is None:
        await callback.answer(STALE_LIST_TEXT, show_alert=True)
        return
    offset = parse_offset(callback.data.split(":", 1)[1])
    text, keyboard = await _render_list(callback.message.chat.id, offset)
    try:
        await callback.message.edit_text(text, reply_markup=keyboard)
    except TelegramBadRequest as exc:
        if "message is not modified" not in exc.message:
            raise
    await callback.answer()


@expenses_router.message(Command("delete", "d", ignore_case=True))
async def cmd_delete(message: Message, command: CommandObject) -> None:
    expense_id = parse_expense_id(command.args)
    await registry.ledger(message.chat.id).delete_expense(expense_id)


@expenses_router.message(Command("balance", "b", ignore_case=True))
async def cmd_balance(message: Message) -> None:
    transfers = await registry.ledger(message.chat.id).balance()
    await message.answer(format_balance(transfers))


@expenses_router.message(Command("reset", ignore_case=True))
async def cmd_reset(message: Message) -> None:
    await registry.ledger(message.chat.id).reset()
