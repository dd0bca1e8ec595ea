from __future__ import annotations

from typing import Iterable, Sequence, TYPE_CHECKING
from zoneinfo import ZoneInfo

from aiogram import html

from splitbook.db.models import Expense, ExpenseEntry

if TYPE_CHECKING:
    from splitbook.services.settlement import Transfer

NOTHING_TO_SHOW = "Nothing to show!"
ALL_CLEAN = "All clean!"


def format_cents(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    whole, fraction = divmod(abs(cents), 100)
    return f"{sign}{whole}.{fraction:02d}"


def _format_entry(entry: ExpenseEntry) -> str:
    return html.quote(f"{entry.name}/{format_cents(abs(entry.cents))}")


def format_expense(expense: Expense, tz: ZoneInfo) -> str:
    created = expense.created_at.astimezone(tz).strftime("%d.%m.%Y")
    parts = [
        f"💰 {html.bold(str(expense.id))} ({created}):",
        *(_format_entry(entry) for entry in expense.creditors()),
        html.bold(format_cents(expense.total_cents)),
        *(_format_entry(entry) for entry in expense.debtors()),
    ]
    if expense.message:
        parts.append(html.quote(f"- {expense.message}"))
    return " ".join(parts)


def format_list_expenses(expenses: Sequence[Expense], tz: ZoneInfo) -> str:
    if not expenses:
        return NOTHING_TO_SHOW
    return "\n".join(format_expense(expense, tz) for expense in expenses)


def format_balance(transfers: Sequence["Transfer"]) -> str:
    if not transfers:
        return ALL_CLEAN
    # Telegram renders <code> in a monospaced font, so padding aligns the amounts.
    width = max(len(transfer.debtor) for transfer in transfers)
    lines = [
        f"💸 {html.code(transfer.debtor.ljust(width))} "
        f"{html.bold(format_cents(transfer.amount_cents))} → "
        f"{html.code(transfer.creditor)}"
        for transfer in transfers
    ]
    return "\n".join(lines)


def format_simple_list(elements: Iterable[str]) -> str:
    lines = [f"- {html.quote(element)}" for element in elements]
    if not lines:
        return NOTHING_TO_SHOW
    return "\n".join(lines)
