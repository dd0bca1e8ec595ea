from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping

from splitbook.db.models import Expense


@dataclass(slots=True)
class Transfer:
    debtor: str
    creditor: str
    amount_cents: int


def net_positions(expenses: Iterable[Expense]) -> tuple[dict[int, int], dict[int, str]]:
    """Net cents per participant id over all expenses, plus the name of each id."""
    balances: dict[int, int] = {}
    names: dict[int, str] = {}
    for expense in expenses:
        for entry in expense.entries:
            balances[entry.participant_id] = balances.get(entry.participant_id, 0) + entry.cents
            names[entry.participant_id] = entry.name
    return balances, names


def settle(balances: Mapping[int, int], names: Mapping[int, str]) -> List[Transfer]:
    """Greedy settlement: the biggest debtor always pays the biggest creditor.

    Finding the minimum number of transfers is NP-complete; this gives at most
    ``N - 1`` transfers for ``N`` non-zero positions. Ties go to the lowest
    participant id, i.e. whoever was registered first.
    """
    positions = {user_id: amount for user_id, amount in balances.items() if amount != 0}
    transfers: list[Transfer] = []

    while positions:
        creditors = [(amount, -user_id) for user_id, amount in positions.items() if amount > 0]
        debtors = [(-amount, -user_id) for user_id, amount in positions.items() if amount < 0]
        if not creditors or not debtors:
            raise ValueError(f"net positions do not sum to zero: {dict(positions)}")

        cred_amount, cred_key = max(creditors)
        debt_amount, debt_key = max(debtors)
        cred_id, debt_id = -cred_key, -debt_key

        transfer_amount = min(cred_amount, debt_amount)
        transfers.append(
            Transfer(debtor=names[debt_id], creditor=names[cred_id], amount_cents=transfer_amount)
        )

        positions[cred_id] -= transfer_amount
        positions[debt_id] += transfer_amount
        if positions[cred_id] == 0:
            del positions[cred_id]
        if positions[debt_id] == 0:
            del positions[debt_id]

    return transfers


def compute_balances(expenses: Iterable[Expense]) -> List[Transfer]:
    balances, names = net_positions(expenses)
    transfers = settle(balances, names)
    transfers.sort(key=lambda t: (t.debtor, t.creditor))
    return transfers
