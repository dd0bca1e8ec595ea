"""In-memory ledger store, used by the tests and by ``DATABASE_URL=memory://``."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from itertools import count
from typing import Optional, Sequence

from splitbook.db.models import Expense, ExpenseEntry, Group, Participant


@dataclass(slots=True)
class _ParticipantRow:
    id: int
    conversation_id: int
    name: str
    aliases: list[str] = field(default_factory=list)
    deleted: bool = False


@dataclass(slots=True)
class _GroupRow:
    id: int
    conversation_id: int
    name: str
    member_ids: list[int] = field(default_factory=list)


class MemoryLedgerStore:
    def __init__(self) -> None:
        self._participants: dict[int, _ParticipantRow] = {}
        self._groups: dict[int, _GroupRow] = {}
        self._expenses: dict[int, tuple[int, Expense]] = {}
        self._participant_ids = count(1)
        self._group_ids = count(1)
        self._expense_ids = count(1)

    def _active(self, conversation_id: int) -> list[_ParticipantRow]:
        return [
            row
            for row in self._participants.values()
            if row.conversation_id == conversation_id and not row.deleted
        ]

    @staticmethod
    def _to_participant(row: _ParticipantRow) -> Participant:
        return Participant(id=row.id, name=row.name, aliases=sorted(row.aliases))

    @staticmethod
    def _to_group(row: _GroupRow) -> Group:
        return Group(id=row.id, name=row.name, member_ids=sorted(row.member_ids))

    @staticmethod
    def _copy_expense(expense: Expense) -> Expense:
        return replace(expense, entries=[replace(entry) for entry in expense.entries])

    async def get_participant(self, conversation_id: int, name: str) -> Optional[Participant]:
        key = name.casefold()
        for row in self._active(conversation_id):
            if row.name == key or key in row.aliases:
                return self._to_participant(row)
        return None

    async def list_participants(self, conversation_id: int) -> list[Participant]:
        return [self._to_participant(row) for row in sorted(self._active(conversation_id), key=lambda r: r.id)]

    async def add_participants(self, conversation_id: int, names: Sequence[str]) -> None:
        for name in names:
            key = name.casefold()
            existing = next(
                (
                    row
                    for row in self._participants.values()
                    if row.conversation_id == conversation_id and row.name == key
                ),
                None,
            )
            if existing is not None:
                existing.deleted = False
                continue
            participant_id = next(self._participant_ids)
            self._participants[participant_id] = _ParticipantRow(
                id=participant_id,
                conversation_id=conversation_id,
                name=key,
            )

    async def remove_participants(self, conversation_id: int, participant_ids: Sequence[int]) -> None:
        for participant_id in participant_ids:
            row = self._participants.get(participant_id)
            if row is None or row.conversation_id != conversation_id:
                continue
            row.deleted = True
            row.aliases.clear()
            for group in self._groups.values():
                if participant_id in group.member_ids:
                    group.member_ids.remove(participant_id)

    async def add_aliases(self, conversation_id: int, participant_id: int, aliases: Sequence[str]) -> None:
        row = self._participants[participant_id]
        for alias in aliases:
            key = alias.casefold()
            if key not in row.aliases:
                row.aliases.append(key)

    async def remove_aliases(self, conversation_id: int, participant_id: int, aliases: Sequence[str]) -> None:
        row = self._participants[participant_id]
        for alias in aliases:
            key = alias.casefold()
            if key in row.aliases:
                row.aliases.remove(key)

    async def get_group(self, conversation_id: int, name: str) -> Optional[Group]:
        key = name.casefold()
        for row in self._groups.values():
            if row.conversation_id == conversation_id and row.name == key:
                return self._to_group(row)
        return None

    async def list_groups(self, conversation_id: int) -> list[Group]:
        rows = [row for row in self._groups.values() if row.conversation_id == conversation_id]
        return [self._to_group(row) for row in sorted(rows, key=lambda r: r.id)]

    async def add_group(self, conversation_id: int, name: str, member_ids: Sequence[int]) -> Group:
        group_id = next(self._group_ids)
        row = _GroupRow(
            id=group_id,
            conversation_id=conversation_id,
            name=name.casefold(),
            member_ids=list(dict.fromkeys(member_ids)),
        )
        self._groups[group_id] = row
        return self._to_group(row)

    async def remove_group(self, conversation_id: int, group_id: int) -> None:
        row = self._groups.get(group_id)
        if row is not None and row.conversation_id == conversation_id:
            del self._groups[group_id]

    async def add_group_members(self, conversation_id: int, group_id: int, participant_ids: Sequence[int]) -> None:
        row = self._groups[group_id]
        for participant_id in participant_ids:
            if participant_id not in row.member_ids:
                row.member_ids.append(participant_id)

    async def remove_group_members(self, conversation_id: int, group_id: int, participant_ids: Sequence[int]) -> None:
        row = self._groups[group_id]
        row.member_ids = [member for member in row.member_ids if member not in participant_ids]

    async def add_expense(self, conversation_id: int, expense: Expense) -> int:
        expense_id = next(self._expense_ids)
        stored = self._copy_expense(expense)
        stored.id = expense_id
        stored.entries = [
            ExpenseEntry(
                participant_id=entry.participant_id,
                name=self._participants[entry.participant_id].name,
                role=entry.role,
                cents=entry.cents,
            )
            for entry in stored.entries
        ]
        self._expenses[expense_id] = (conversation_id, stored)
        return expense_id

    async def delete_expense(self, conversation_id: int, expense_id: int) -> bool:
        stored = self._expenses.get(expense_id)
        if stored is None or stored[0] != conversation_id:
            return False
        del self._expenses[expense_id]
        return True

    async def list_expenses(self, conversation_id: int, limit: int, offset: int = 0) -> list[Expense]:
        expenses = await self.list_all_expenses(conversation_id)
        expenses.reverse()
        return expenses[offset:offset + limit]

    async def list_all_expenses(self, conversation_id: int) -> list[Expense]:
        return [
            self._copy_expense(expense)
            for expense_id, (owner, expense) in sorted(self._expenses.items())
            if owner == conversation_id
        ]

    async def delete_all_expenses(self, conversation_id: int) -> int:
        doomed = [expense_id for expense_id, (owner, _) in self._expenses.items() if owner == conversation_id]
        for expense_id in doomed:
            del self._expenses[expense_id]
        return len(doomed)
