from __future__ import annotations

from typing import Iterable, Sequence

from splitbook.db.models import ExpenseEntry, Role
from splitbook.services.errors import NegativeRemainderError, OverpaidError, UnderpaidError
from splitbook.services.formatter import format_cents
from splitbook.services.resolve import ResolvedEntry


def split_role(total_cents: int, entries: Sequence[ResolvedEntry], role: Role) -> list[int]:
    """Cents assigned to each entry of one role, in the order of ``entries``.

    Custom amounts are kept as they are; the rest of the total is shared evenly
    by the other entries and the first ones absorb the leftover cents.
    """
    fixed = sum(entry.amount_cents for entry in entries if entry.amount_cents is not None)
    free_count = sum(1 for entry in entries if entry.amount_cents is None)

    if free_count == 0:
        if not entries and total_cents > 0:
            raise UnderpaidError(f"there are no {role.value}s in this expense")
        if fixed > total_cents:
            raise OverpaidError(
                f"the custom amounts of all {role.value}s ({format_cents(fixed)}) "
                f"are more than the expense amount ({format_cents(total_cents)})"
            )
        if fixed < total_cents:
            raise UnderpaidError(
                f"all {role.value}s have a custom amount and their total ({format_cents(fixed)}) "
                f"is less than the expense amount ({format_cents(total_cents)})"
            )
        return [entry.amount_cents or 0 for entry in entries]

    remainder = total_cents - fixed
    if remainder < 0:
        raise NegativeRemainderError(
            f"the custom amounts of {role.value}s ({format_cents(fixed)}) "
            f"are more than the expense amount ({format_cents(total_cents)})"
        )

    base_share, extra = divmod(remainder, free_count)
    shares: list[int] = []
    free_index = 0
    for entry in entries:
        if entry.amount_cents is not None:
            shares.append(entry.amount_cents)
            continue
        shares.append(base_share + (1 if free_index < extra else 0))
        free_index += 1
    return shares


def allocate_entries(
    total_cents: int,
    creditors: Sequence[ResolvedEntry],
    debtors: Sequence[ResolvedEntry],
) -> list[ExpenseEntry]:
    """Per-role signed entries of one expense: credits are positive, debts negative."""
    credits = split_role(total_cents, creditors, Role.CREDITOR)
    debts = split_role(total_cents, debtors, Role.DEBTOR)

    entries = [
        ExpenseEntry(
            participant_id=entry.participant.id,
            name=entry.participant.name,
            role=Role.CREDITOR,
            cents=cents,
        )
        for entry, cents in zip(creditors, credits)
    ]
    entries.extend(
        ExpenseEntry(
            participant_id=entry.participant.id,
            name=entry.participant.name,
            role=Role.DEBTOR,
            cents=-cents,
        )
        for entry, cents in zip(debtors, debts)
    )
    return entries


def merge_entries(entries: Iterable[ExpenseEntry]) -> dict[int, int]:
    result: dict[int, int] = {}
    for entry in entries:
        result[entry.participant_id] = result.get(entry.participant_id, 0) + entry.cents
    return result


def allocate(
    total_cents: int,
    creditors: Sequence[ResolvedEntry],
    debtors: Sequence[ResolvedEntry],
) -> list[tuple[int, int]]:
    """Net signed cents per participant id, in order of first appearance."""
    return list(merge_entries(allocate_entries(total_cents, creditors, debtors)).items())
