from __future__ import annotations

from aiogram import Router, html
from aiogram.filters import Command, CommandStart
from aiogram.types import ErrorEvent, Message

from splitbook.logging import get_logger
from splitbook.services.errors import StoreUnavailableError

basic_router = Router()

log = get_logger(__name__)

HELP_TEXT = (
    "<b>📒 splitbook</b> keeps track of shared expenses in this chat.\n\n"
    "<b>Expenses:</b>\n"
    "/expense (/e) — add an expense\n"
    "/list (/l) — latest expenses\n"
    "/delete (/d) <code>id</code> — delete an expense\n"
    "/balance (/b) — who pays whom\n"
    "/reset — delete every expense of this chat\n\n"
    "<b>Participants:</b>\n"
    "/addparticipants (/ap) <code>name...</code>\n"
    "/removeparticipants (/rp) <code>name...</code>\n"
    "/listparticipants (/lp)\n"
    "/addaliases (/aa) <code>participant alias...</code>\n"
    "/removealiases (/ra) <code>participant alias...</code>\n"
    "/listaliases (/la) <code>participant</code>\n\n"
    "<b>Groups:</b>\n"
    "/addgroup (/ag) <code>group [member...]</code>\n"
    "/removegroup (/rg) <code>group</code>\n"
    "/addgroupmembers (/agm) <code>group member...</code>\n"
    "/removegroupmembers (/rgm) <code>group member...</code>\n"
    "/listgroups (/lg)\n"
    "/listgroupmembers (/lgm) <code>group</code>\n\n"
    "<b>Expense format:</b>\n"
    "<code>payer... amount debtor... - message</code>\n"
    "• <code>alice 30 alice bob carl - dinner</code> — alice paid 30, split in three\n"
    "• <code>alice 30 bob/10 #flat</code> — bob owes 10, the flat group shares the rest\n"
    "• <code>alice/20 bob 30 carl</code> — alice paid 20, bob 10, carl owes everything\n"
    "Amounts are truncated to cents: <code>12.999</code> is 12.99."
)


@basic_router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    await message.answer(HELP_TEXT)


@basic_router.message(Command("help", ignore_case=True))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


async def on_ledger_error(event: ErrorEvent) -> None:
    """Reply with the rule a command broke; nothing was written when this runs."""
    error = event.exception
    update = event.update

    if isinstance(error, StoreUnavailableError):
        log.error("command.failed", update_id=update.update_id, error=str(error))
    else:
        log.debug("command.rejected", update_id=update.update_id, error=str(error))

    text = html.quote(str(error))
    if update.message is not None:
        await update.message.answer(text)
    elif update.callback_query is not None:
        await update.callback_query.answer(str(error), show_alert=True)
