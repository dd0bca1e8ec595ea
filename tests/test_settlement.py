from datetime import datetime, timezone

from splitbook.db.models import Expense, ExpenseEntry, Role
from splitbook.services.settlement import Transfer, compute_balances, net_positions, settle

NAMES = {1: "ann", 2: "ben", 3: "cat", 4: "dan"}


def make_expense(*entries):
    total = sum(cents for _, cents in entries if cents > 0)
    return Expense(
        total_cents=total,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        entries=[
            ExpenseEntry(
                participant_id=participant_id,
                name=NAMES[participant_id],
                role=Role.CREDITOR if cents > 0 else Role.DEBTOR,
                cents=cents,
            )
            for participant_id, cents in entries
        ],
    )


def test_settle_balances():
    balances = {1: 500, 2: -300, 3: -200}

    transfers = settle(balances, NAMES)

    assert transfers == [
        Transfer(debtor="ben", creditor="ann", amount_cents=300),
        Transfer(debtor="cat", creditor="ann", amount_cents=200),
    ]

    after = dict(balances)
    for t in transfers:
        debtor = next(k for k, v in NAMES.items() if v == t.debtor)
        creditor = next(k for k, v in NAMES.items() if v == t.creditor)
        after[creditor] -= t.amount_cents
        after[debtor] += t.amount_cents

    assert all(value == 0 for value in after.values())


def test_settle_largest_first():
    transfers = settle({1: 1000, 2: 500, 3: -700, 4: -800}, NAMES)
    assert transfers == [
        Transfer(debtor="dan", creditor="ann", amount_cents=800),
        Transfer(debtor="cat", creditor="ben", amount_cents=500),
        Transfer(debtor="cat", creditor="ann", amount_cents=200),
    ]


def test_settle_ties_go_to_first_registered():
    transfers = settle({1: 500, 2: -300, 3: -300, 4: 100}, NAMES)
    assert transfers == [
        Transfer(debtor="ben", creditor="ann", amount_cents=300),
        Transfer(debtor="cat", creditor="ann", amount_cents=200),
        Transfer(debtor="cat", creditor="dan", amount_cents=100),
    ]


def test_net_positions():
    expenses = [
        make_expense((1, 1200), (1, 0), (2, -600), (3, -600)),
        make_expense((2, 300), (1, -300)),
    ]
    balances, names = net_positions(expenses)
    assert balances == {1: 900, 2: -300, 3: -600}
    assert names == {1: "ann", 2: "ben", 3: "cat"}


def test_compute_balances_sorted_and_deterministic():
    expenses = [
        make_expense((4, 3000), (1, -1000), (2, -1000), (3, -1000)),
        make_expense((1, 2000), (2, -500), (3, -500), (4, -1000)),
        make_expense((3, 999), (1, -333), (2, -333), (3, -333)),
    ]

    first = compute_balances(expenses)
    second = compute_balances(expenses)

    assert first == second
    assert first == sorted(first, key=lambda t: (t.debtor, t.creditor))

    balances, _ = net_positions(expenses)
    nonzero = sum(1 for value in balances.values() if value != 0)
    assert len(first) <= nonzero - 1
    assert sum(t.amount_cents for t in first) == sum(v for v in balances.values() if v > 0)


def test_compute_balances_empty():
    assert compute_balances([]) == []
    assert compute_balances([make_expense((1, 500), (1, -500))]) == []
