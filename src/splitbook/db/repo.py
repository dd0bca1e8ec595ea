from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Optional, Sequence

import asyncpg

from splitbook.db.models import Expense, ExpenseEntry, Group, Participant, Role
from splitbook.logging import get_logger, sql_logger
from splitbook.services.errors import StoreUnavailableError

STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class Database:
    def __init__(self, dsn: str, timeout: float | None = None) -> None:
        self._dsn = dsn
        self._timeout = timeout
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            # asyncpg ожидает схему postgresql/postgres, без "+asyncpg"
            dsn = self._dsn.replace("+asyncpg", "")
            async with self._guard("connect"):
                self._pool = await asyncpg.create_pool(dsn, command_timeout=self._timeout)
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    @asynccontextmanager
    async def _guard(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except STORE_ERRORS as exc:
            self._log.error("db.unavailable", action=action, error=repr(exc))
            raise StoreUnavailableError() from exc

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetch", query=query, args=args)
        async with self._guard("fetch"):
            return await self._pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchrow", query=query, args=args)
        async with self._guard("fetchrow"):
            return await self._pool.fetchrow(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.execute", query=query, args=args)
        async with self._guard("execute"):
            return await self._pool.execute(query, *args)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.transaction")
        async with self._guard("transaction"):
            async with self._pool.acquire() as connection:
                async with connection.transaction():
                    yield connection

    async def _ensure_pool(self) -> None:
        if self._pool is None:
            await self.connect()


def _affected_rows(status: str) -> int:
    # asyncpg returns the command tag, e.g. "DELETE 3"
    try:
        return int(status.split()[-1])
    except (IndexError, ValueError):
        return 0


PARTICIPANTS_QUERY = """
    SELECT p.id, p.name,
           array_agg(a.alias ORDER BY a.alias) FILTER (WHERE a.alias IS NOT NULL) AS aliases
    FROM participants p
    LEFT JOIN aliases a ON a.participant_id = p.id
    WHERE p.conversation_id = $1 AND p.deleted_at IS NULL
    GROUP BY p.id
"""

GROUPS_QUERY = """
    SELECT g.id, g.name,
           array_agg(gm.participant_id ORDER BY gm.participant_id)
               FILTER (WHERE gm.participant_id IS NOT NULL) AS member_ids
    FROM participant_groups g
    LEFT JOIN group_members gm ON gm.group_id = g.id
    WHERE g.conversation_id = $1
"""

EXPENSE_COLUMNS = """
    SELECT e.id, e.created_at, e.total_cents, e.message,
           ee.participant_id, p.name, ee.role, ee.cents
"""


class LedgerRepository:
    """PostgreSQL implementation of :class:`splitbook.db.base.LedgerStore`."""

    def __init__(self, db: Database) -> None:
        self.db = db

    @staticmethod
    def _participant(row: Any) -> Participant:
        return Participant(id=int(row["id"]), name=row["name"], aliases=list(row["aliases"] or []))

    @staticmethod
    def _group(row: Any) -> Group:
        return Group(id=int(row["id"]), name=row["name"], member_ids=[int(m) for m in row["member_ids"] or []])

    @staticmethod
    def _expenses(rows: Iterable[Any]) -> list[Expense]:
        expenses: dict[int, Expense] = {}
        for row in rows:
            expense = expenses.get(row["id"])
            if expense is None:
                expense = Expense(
                    id=int(row["id"]),
                    created_at=row["created_at"],
                    total_cents=int(row["total_cents"]),
                    message=row["message"],
                    entries=[],
                )
                expenses[expense.id] = expense
            if row["participant_id"] is not None:
                expense.entries.append(
                    ExpenseEntry(
                        participant_id=int(row["participant_id"]),
                        name=row["name"],
                        role=Role(row["role"]),
                        cents=int(row["cents"]),
                    )
                )
        return list(expenses.values())

    async def get_participant(self, conversation_id: int, name: str) -> Optional[Participant]:
        row = await self.db.fetchrow(
            PARTICIPANTS_QUERY + " HAVING p.name = $2 OR $2 = ANY(array_agg(a.alias))",
            conversation_id,
            name.casefold(),
        )
        return self._participant(row) if row else None

    async def list_participants(self, conversation_id: int) -> list[Participant]:
        rows = await self.db.fetch(PARTICIPANTS_QUERY + " ORDER BY p.id", conversation_id)
        return [self._participant(row) for row in rows]

    async def add_participants(self, conversation_id: int, names: Sequence[str]) -> None:
        async with self.db.transaction() as connection:
            await connection.executemany(
                """
                INSERT INTO participants (conversation_id, name)
                VALUES ($1, $2)
                ON CONFLICT (conversation_id, name) DO UPDATE SET deleted_at = NULL
                """,
                [(conversation_id, name.casefold()) for name in names],
            )

    async def remove_participants(self, conversation_id: int, participant_ids: Sequence[int]) -> None:
        ids = list(participant_ids)
        async with self.db.transaction() as connection:
            await connection.execute(
                """
                UPDATE participants SET deleted_at = now()
                WHERE conversation_id = $1 AND id = ANY($2::bigint[])
                """,
                conversation_id,
                ids,
            )
            await connection.execute("DELETE FROM aliases WHERE participant_id = ANY($1::bigint[])", ids)
            await connection.execute("DELETE FROM group_members WHERE participant_id = ANY($1::bigint[])", ids)

    async def add_aliases(self, conversation_id: int, participant_id: int, aliases: Sequence[str]) -> None:
        async with self.db.transaction() as connection:
            await connection.executemany(
                """
                INSERT INTO aliases (participant_id, conversation_id, alias)
                VALUES ($1, $2, $3)
                ON CONFLICT DO NOTHING
                """,
                [(participant_id, conversation_id, alias.casefold()) for alias in aliases],
            )

    async def remove_aliases(self, conversation_id: int, participant_id: int, aliases: Sequence[str]) -> None:
        await self.db.execute(
            "DELETE FROM aliases WHERE participant_id = $1 AND alias = ANY($2::text[])",
            participant_id,
            [alias.casefold() for alias in aliases],
        )

    async def get_group(self, conversation_id: int, name: str) -> Optional[Group]:
        row = await self.db.fetchrow(
            GROUPS_QUERY + " AND g.name = $2 GROUP BY g.id",
            conversation_id,
            name.casefold(),
        )
        return self._group(row) if row else None

    async def list_groups(self, conversation_id: int) -> list[Group]:
        rows = await self.db.fetch(GROUPS_QUERY + " GROUP BY g.id ORDER BY g.id", conversation_id)
        return [self._group(row) for row in rows]

    async def add_group(self, conversation_id: int, name: str, member_ids: Sequence[int]) -> Group:
        members = list(dict.fromkeys(member_ids))
        async with self.db.transaction() as connection:
            group_id = await connection.fetchval(
                "INSERT INTO participant_groups (conversation_id, name) VALUES ($1, $2) RETURNING id",
                conversation_id,
                name.casefold(),
            )
            if members:
                await connection.executemany(
                    "INSERT INTO group_members (group_id, participant_id) VALUES ($1, $2) ON CONFLICT DO NOTHING",
                    [(group_id, member) for member in members],
                )
        return Group(id=int(group_id), name=name.casefold(), member_ids=sorted(members))

    async def remove_group(self, conversation_id: int, group_id: int) -> None:
        await self.db.execute(
            "DELETE FROM participant_groups WHERE conversation_id = $1 AND id = $2",
            conversation_id,
            group_id,
        )

    async def add_group_members(self, conversation_id: int, group_id: int, participant_ids: Sequence[int]) -> None:
        async with self.db.transaction() as connection:
            await connection.executemany(
                "INSERT INTO group_members (group_id, participant_id) VALUES ($1, $2) ON CONFLICT DO NOTHING",
                [(group_id, participant_id) for participant_id in participant_ids],
            )

    async def remove_group_members(self, conversation_id: int, group_id: int, participant_ids: Sequence[int]) -> None:
        await self.db.execute(
            "DELETE FROM group_members WHERE group_id = $1 AND participant_id = ANY($2::bigint[])",
            group_id,
            list(participant_ids),
        )

    async def add_expense(self, conversation_id: int, expense: Expense) -> int:
        async with self.db.transaction() as connection:
            expense_id = await connection.fetchval(
                """
                INSERT INTO expenses (conversation_id, created_at, total_cents, message)
                VALUES ($1, $2, $3, $4)
                RETURNING id
                """,
                conversation_id,
                expense.created_at,
                expense.total_cents,
                expense.message,
            )
            if expense.entries:
                await connection.executemany(
                    """
                    INSERT INTO expense_entries (expense_id, position, participant_id, role, cents)
                    VALUES ($1, $2, $3, $4, $5)
                    """,
                    [
                        (expense_id, position, entry.participant_id, entry.role.value, entry.cents)
                        for position, entry in enumerate(expense.entries)
                    ],
                )
        return int(expense_id)

    async def delete_expense(self, conversation_id: int, expense_id: int) -> bool:
        status = await self.db.execute(
            "DELETE FROM expenses WHERE conversation_id = $1 AND id = $2",
            conversation_id,
            expense_id,
        )
        return _affected_rows(status) > 0

    async def list_expenses(self, conversation_id: int, limit: int, offset: int = 0) -> list[Expense]:
        rows = await self.db.fetch(
            """
            WITH page AS (
                SELECT id FROM expenses
                WHERE conversation_id = $1
                ORDER BY id DESC
                LIMIT $2 OFFSET $3
            )
            """
            + EXPENSE_COLUMNS
            + """
            FROM expenses e
            JOIN page ON page.id = e.id
            LEFT JOIN expense_entries ee ON ee.expense_id = e.id
            LEFT JOIN participants p ON p.id = ee.participant_id
            ORDER BY e.id DESC, ee.position
            """,
            conversation_id,
            limit,
            offset,
        )
        return self._expenses(rows)

    async def list_all_expenses(self, conversation_id: int) -> list[Expense]:
        rows = await self.db.fetch(
            EXPENSE_COLUMNS
            + """
            FROM expenses e
            LEFT JOIN expense_entries ee ON ee.expense_id = e.id
            LEFT JOIN participants p ON p.id = ee.participant_id
            WHERE e.conversation_id = $1
            ORDER BY e.id, ee.position
            """,
            conversation_id,
        )
        return self._expenses(rows)

    async def delete_all_expenses(self, conversation_id: int) -> int:
        status = await self.db.execute("DELETE FROM expenses WHERE conversation_id = $1", conversation_id)
        return _affected_rows(status)
