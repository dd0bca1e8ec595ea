"""Commands run against the ledger of one conversation.

Each mutating command validates everything it needs first and then performs a
single store call, under the conversation lock, so that a rejected command
never leaves a partial write behind.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional, Sequence

from splitbook.db.base import LedgerStore
from splitbook.db.models import Expense, Group, Participant
from splitbook.logging import get_logger
from splitbook.services.errors import DuplicateRegistrationError, NotFoundError
from splitbook.services.resolve import build_name_index, resolve
from splitbook.services.settlement import Transfer, compute_balances
from splitbook.services.split import allocate_entries
from splitbook.utils.parse import parse_expense

log = get_logger(__name__)


class Ledger:
    def __init__(self, conversation_id: int, store: LedgerStore, lock: asyncio.Lock) -> None:
        self.conversation_id = conversation_id
        self.store = store
        self._lock = lock

    async def _snapshot(self) -> tuple[list[Participant], list[Group]]:
        participants = await self.store.list_participants(self.conversation_id)
        groups = await self.store.list_groups(self.conversation_id)
        return participants, groups

    @staticmethod
    def _check_free(names: Sequence[str], participants: Sequence[Participant], groups: Sequence[Group]) -> None:
        index = build_name_index(participants)
        group_names = {group.name for group in groups}
        for name in names:
            owner = index.get(name)
            if owner is not None and owner.name == name:
                raise DuplicateRegistrationError(f"`{name}` is already a registered participant")
            if owner is not None:
                raise DuplicateRegistrationError(f"`{name}` is already an alias of `{owner.name}`")
            if name in group_names:
                raise DuplicateRegistrationError(f"`{name}` is already the name of a group")

    @staticmethod
    def _lookup(names: Sequence[str], participants: Sequence[Participant]) -> list[Participant]:
        index = build_name_index(participants)
        found: list[Participant] = []
        for name in names:
            participant = index.get(name)
            if participant is None:
                raise NotFoundError(f"`{name}` is not a registered participant")
            if participant not in found:
                found.append(participant)
        return found

    @staticmethod
    def _find_group(name: str, groups: Sequence[Group]) -> Group:
        for group in groups:
            if group.name == name:
                return group
        raise NotFoundError(f"`{name}` is not a registered group")

    async def add_expense(self, text: str, created_at: Optional[datetime] = None) -> int:
        intent = parse_expense(text)
        async with self._lock:
            participants, groups = await self._snapshot()
            resolved = resolve(intent, participants, groups)
            entries = allocate_entries(resolved.total_cents, resolved.creditors, resolved.debtors)
            expense = Expense(
                total_cents=resolved.total_cents,
                entries=entries,
                created_at=created_at or datetime.now(timezone.utc),
                message=resolved.message,
            )
            expense_id = await self.store.add_expense(self.conversation_id, expense)
        log.info(
            "expense.added",
            conversation_id=self.conversation_id,
            expense_id=expense_id,
            total_cents=expense.total_cents,
            entries=len(entries),
        )
        return expense_id

    async def delete_expense(self, expense_id: int) -> None:
        async with self._lock:
            deleted = await self.store.delete_expense(self.conversation_id, expense_id)
        if not deleted:
            raise NotFoundError(f"there is no expense with ID {expense_id}")
        log.info("expense.deleted", conversation_id=self.conversation_id, expense_id=expense_id)

    async def list_expenses(self, limit: int, offset: int = 0) -> tuple[list[Expense], bool]:
        """A page of expenses, newest first, and whether older ones exist."""
        expenses = await self.store.list_expenses(self.conversation_id, limit + 1, offset)
        return expenses[:limit], len(expenses) > limit

    async def balance(self) -> list[Transfer]:
        expenses = await self.store.list_all_expenses(self.conversation_id)
        return compute_balances(expenses)

    async def reset(self) -> int:
        async with self._lock:
            removed = await self.store.delete_all_expenses(self.conversation_id)
        log.info("ledger.reset", conversation_id=self.conversation_id, removed=removed)
        return removed

    async def add_participants(self, names: Sequence[str]) -> None:
        names = [name.casefold() for name in names]
        async with self._lock:
            participants, groups = await self._snapshot()
            self._check_free(names, participants, groups)
            await self.store.add_participants(self.conversation_id, names)

    async def remove_participants(self, names: Sequence[str]) -> None:
        names = [name.casefold() for name in names]
        async with self._lock:
            participants = await self.store.list_participants(self.conversation_id)
            found = self._lookup(names, participants)
            await self.store.remove_participants(self.conversation_id, [p.id for p in found])

    async def list_participants(self) -> list[str]:
        participants = await self.store.list_participants(self.conversation_id)
        return sorted(participant.name for participant in participants)

    async def add_aliases(self, participant_name: str, aliases: Sequence[str]) -> None:
        aliases = [alias.casefold() for alias in aliases]
        async with self._lock:
            participants, groups = await self._snapshot()
            participant = self._lookup([participant_name.casefold()], participants)[0]
            self._check_free(aliases, participants, groups)
            await self.store.add_aliases(self.conversation_id, participant.id, aliases)

    async def remove_aliases(self, participant_name: str, aliases: Sequence[str]) -> None:
        aliases = [alias.casefold() for alias in aliases]
        async with self._lock:
            participants = await self.store.list_participants(self.conversation_id)
            participant = self._lookup([participant_name.casefold()], participants)[0]
            for alias in aliases:
                if alias not in participant.aliases:
                    raise NotFoundError(f"`{alias}` is not an alias of `{participant.name}`")
            await self.store.remove_aliases(self.conversation_id, participant.id, aliases)

    async def list_aliases(self, participant_name: str) -> list[str]:
        participants = await self.store.list_participants(self.conversation_id)
        participant = self._lookup([participant_name.casefold()], participants)[0]
        return sorted(participant.aliases)

    async def add_group(self, name: str, members: Sequence[str] = ()) -> None:
        name = name.casefold()
        async with self._lock:
            participants, groups = await self._snapshot()
            self._check_free([name], participants, groups)
            found = self._lookup([member.casefold() for member in members], participants)
            await self.store.add_group(self.conversation_id, name, [p.id for p in found])

    async def remove_group(self, name: str) -> None:
        async with self._lock:
            groups = await self.store.list_groups(self.conversation_id)
            group = self._find_group(name.casefold(), groups)
            await self.store.remove_group(self.conversation_id, group.id)

    async def add_group_members(self, name: str, members: Sequence[str]) -> None:
        async with self._lock:
            participants, groups = await self._snapshot()
            group = self._find_group(name.casefold(), groups)
            found = self._lookup([member.casefold() for member in members], participants)
            await self.store.add_group_members(self.conversation_id, group.id, [p.id for p in found])

    async def remove_group_members(self, name: str, members: Sequence[str]) -> None:
        async with self._lock:
            participants, groups = await self._snapshot()
            group = self._find_group(name.casefold(), groups)
            found = self._lookup([member.casefold() for member in members], participants)
            for participant in found:
                if participant.id not in group.member_ids:
                    raise NotFoundError(f"`{participant.name}` is not a member of group `{group.name}`")
            await self.store.remove_group_members(self.conversation_id, group.id, [p.id for p in found])

    async def list_groups(self) -> list[str]:
        groups = await self.store.list_groups(self.conversation_id)
        return sorted(group.name for group in groups)

    async def list_group_members(self, name: str) -> list[str]:
        participants, groups = await self._snapshot()
        group = self._find_group(name.casefold(), groups)
        names = {participant.id: participant.name for participant in participants}
        return sorted(names[member] for member in group.member_ids if member in names)
