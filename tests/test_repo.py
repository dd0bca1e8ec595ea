from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest

from splitbook.db.models import Expense, ExpenseEntry, Role
from splitbook.db.repo import Database, LedgerRepository
from splitbook.services.errors import StoreUnavailableError


class DummyConnection:
    def __init__(self) -> None:
        self.calls = []

    async def fetchval(self, query: str, *args):
        self.calls.append(("fetchval", args))
        return 7

    async def executemany(self, query: str, args):
        self.calls.append(("executemany", list(args)))

    async def execute(self, query: str, *args):
        self.calls.append(("execute", args))
        return "OK"


class DummyDB:
    def __init__(self) -> None:
        self.rows = []
        self.status = "DELETE 1"
        self.connection = DummyConnection()

    async def fetch(self, query: str, *args):
        return self.rows

    async def fetchrow(self, query: str, *args):
        return self.rows[0] if self.rows else None

    async def execute(self, query: str, *args):
        return self.status

    @asynccontextmanager
    async def transaction(self):
        yield self.connection


@pytest.mark.asyncio
async def test_list_participants_without_aliases():
    db = DummyDB()
    repo = LedgerRepository(db)  # type: ignore[arg-type]
    db.rows = [
        {"id": 1, "name": "alice", "aliases": ["al"]},
        {"id": 2, "name": "bob", "aliases": None},
    ]

    participants = await repo.list_participants(5)

    assert [p.name for p in participants] == ["alice", "bob"]
    assert participants[0].aliases == ["al"]
    assert participants[1].aliases == []


@pytest.mark.asyncio
async def test_add_expense_writes_entries_in_order():
    db = DummyDB()
    repo = LedgerRepository(db)  # type: ignore[arg-type]
    expense = Expense(
        total_cents=1200,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        entries=[
            ExpenseEntry(participant_id=1, name="p1", role=Role.CREDITOR, cents=1200),
            ExpenseEntry(participant_id=2, name="p2", role=Role.DEBTOR, cents=-1200),
        ],
    )

    assert await repo.add_expense(5, expense) == 7

    kind, rows = db.connection.calls[-1]
    assert kind == "executemany"
    assert rows == [(7, 0, 1, "creditor", 1200), (7, 1, 2, "debtor", -1200)]


@pytest.mark.asyncio
async def test_delete_expense_reports_missing_rows():
    db = DummyDB()
    repo = LedgerRepository(db)  # type: ignore[arg-type]

    assert await repo.delete_expense(5, 1)
    db.status = "DELETE 0"
    assert not await repo.delete_expense(5, 1)
    db.status = "DELETE 4"
    assert await repo.delete_all_expenses(5) == 4


@pytest.mark.asyncio
async def test_list_expenses_groups_rows():
    db = DummyDB()
    repo = LedgerRepository(db)  # type: ignore[arg-type]
    created = datetime(2026, 1, 1, tzinfo=timezone.utc)
    db.rows = [
        {"id": 2, "created_at": created, "total_cents": 500, "message": None,
         "participant_id": 1, "name": "alice", "role": "creditor", "cents": 500},
        {"id": 2, "created_at": created, "total_cents": 500, "message": None,
         "participant_id": 2, "name": "bob", "role": "debtor", "cents": -500},
        {"id": 1, "created_at": created, "total_cents": 0, "message": "free",
         "participant_id": None, "name": None, "role": None, "cents": None},
    ]

    expenses = await repo.list_expenses(5, 10)

    assert [e.id for e in expenses] == [2, 1]
    assert [(e.name, e.role, e.cents) for e in expenses[0].entries] == [
        ("alice", Role.CREDITOR, 500),
        ("bob", Role.DEBTOR, -500),
    ]
    assert expenses[1].entries == []
    assert expenses[1].message == "free"


@pytest.mark.asyncio
async def test_database_errors_become_store_unavailable():
    db = Database("postgresql://localhost/splitbook")

    with pytest.raises(StoreUnavailableError):
        async with db._guard("fetch"):
            raise ConnectionRefusedError()


@pytest.mark.asyncio
async def test_get_group_missing():
    db = DummyDB()
    repo = LedgerRepository(db)  # type: ignore[arg-type]

    assert await repo.get_group(5, "flat") is None
    db.rows = [{"id": 3, "name": "flat", "member_ids": [2, 1]}]
    group = await repo.get_group(5, "FLAT")
    assert group.id == 3
    assert group.member_ids == [2, 1]
