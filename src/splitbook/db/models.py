from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Role(str, Enum):
    CREDITOR = "creditor"
    DEBTOR = "debtor"


@dataclass(slots=True)
class Participant:
    id: int
    name: str
    aliases: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Group:
    id: int
    name: str
    member_ids: list[int] = field(default_factory=list)


@dataclass(slots=True)
class ExpenseEntry:
    participant_id: int
    name: str
    role: Role
    cents: int


@dataclass(slots=True)
class Expense:
    total_cents: int
    entries: list[ExpenseEntry]
    created_at: datetime
    message: Optional[str] = None
    id: Optional[int] = None

    def creditors(self) -> list[ExpenseEntry]:
        return [entry for entry in self.entries if entry.role == Role.CREDITOR]

    def debtors(self) -> list[ExpenseEntry]:
        return [entry for entry in self.entries if entry.role == Role.DEBTOR]
