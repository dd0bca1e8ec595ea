from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

LIST_CALLBACK_PREFIX = "list"


def list_callback_data(offset: int) -> str:
    return f"{LIST_CALLBACK_PREFIX}:{offset}"


def build_list_keyboard(offset: int, page_size: int, has_more: bool) -> InlineKeyboardMarkup | None:
    row: list[InlineKeyboardButton] = []
    if offset > 0:
        row.append(
            InlineKeyboardButton(
                text="« Previous",
                callback_data=list_callback_data(max(offset - page_size, 0)),
            )
        )
    if has_more:
        row.append(InlineKeyboardButton(text="Next »", callback_data=list_callback_data(offset + page_size)))

    if not row:
        return None
    return InlineKeyboardMarkup(inline_keyboard=[row])
