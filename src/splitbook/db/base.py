from __future__ import annotations

from typing import Optional, Protocol, Sequence

from splitbook.db.models import Expense, Group, Participant


class LedgerStore(Protocol):
    """Storage of participants, aliases, groups and expenses, one ledger per conversation.

    Names are stored case-folded. Implementations only persist; every rule about
    what may be written is checked by :class:`splitbook.services.ledger.Ledger`
    before calling them.
    """

    async def get_participant(self, conversation_id: int, name: str) -> Optional[Participant]:
        """Active participant whose name or alias is ``name``."""

    async def list_participants(self, conversation_id: int) -> list[Participant]:
        """Active participants in registration order."""

    async def add_participants(self, conversation_id: int, names: Sequence[str]) -> None:
        """Register participants; a removed participant with the same name is reactivated."""

    async def remove_participants(self, conversation_id: int, participant_ids: Sequence[int]) -> None:
        """Deactivate participants, dropping their aliases and group memberships."""

    async def add_aliases(self, conversation_id: int, participant_id: int, aliases: Sequence[str]) -> None: ...

    async def remove_aliases(self, conversation_id: int, participant_id: int, aliases: Sequence[str]) -> None: ...

    async def get_group(self, conversation_id: int, name: str) -> Optional[Group]: ...

    async def list_groups(self, conversation_id: int) -> list[Group]: ...

    async def add_group(self, conversation_id: int, name: str, member_ids: Sequence[int]) -> Group: ...

    async def remove_group(self, conversation_id: int, group_id: int) -> None: ...

    async def add_group_members(self, conversation_id: int, group_id: int, participant_ids: Sequence[int]) -> None: ...

    async def remove_group_members(self, conversation_id: int, group_id: int, participant_ids: Sequence[int]) -> None: ...

    async def add_expense(self, conversation_id: int, expense: Expense) -> int:
        """Persist the expense and all of its entries atomically, returning the new id."""

    async def delete_expense(self, conversation_id: int, expense_id: int) -> bool: ...

    async def list_expenses(self, conversation_id: int, limit: int, offset: int = 0) -> list[Expense]:
        """Expenses newest first."""

    async def list_all_expenses(self, conversation_id: int) -> list[Expense]: ...

    async def delete_all_expenses(self, conversation_id: int) -> int: ...
