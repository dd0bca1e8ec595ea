from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from splitbook.db.models import Group, Participant, Role
from splitbook.services.errors import ConflictError, GrammarError, UnknownReferenceError
from splitbook.services.formatter import format_cents
from splitbook.utils.parse import ExpenseIntent, GroupToken, Token


@dataclass(slots=True)
class ResolvedEntry:
    participant: Participant
    amount_cents: Optional[int] = None


@dataclass(slots=True)
class ResolvedExpense:
    total_cents: int
    creditors: list[ResolvedEntry] = field(default_factory=list)
    debtors: list[ResolvedEntry] = field(default_factory=list)
    message: Optional[str] = None


def build_name_index(participants: Sequence[Participant]) -> dict[str, Participant]:
    index: dict[str, Participant] = {}
    for participant in participants:
        index[participant.name.casefold()] = participant
        for alias in participant.aliases:
            index[alias.casefold()] = participant
    return index


def _expand(
    tokens: Sequence[Token],
    names: dict[str, Participant],
    groups: dict[str, Group],
    by_id: dict[int, Participant],
) -> list[ResolvedEntry]:
    entries: list[ResolvedEntry] = []
    for token in tokens:
        if isinstance(token, GroupToken):
            if token.amount_cents is not None:
                raise GrammarError(f"custom amounts are not allowed for groups (`#{token.name}`)")
            group = groups.get(token.name)
            if group is None:
                raise UnknownReferenceError(f"`{token.name}` is not a registered group")
            for member_id in sorted(group.member_ids):
                member = by_id.get(member_id)
                if member is not None:
                    entries.append(ResolvedEntry(participant=member))
        else:
            participant = names.get(token.name)
            if participant is None:
                raise UnknownReferenceError(f"`{token.name}` is not a registered participant")
            entries.append(ResolvedEntry(participant=participant, amount_cents=token.amount_cents))
    return entries


def _collapse(entries: list[ResolvedEntry], role: Role) -> list[ResolvedEntry]:
    collapsed: dict[int, ResolvedEntry] = {}
    for entry in entries:
        seen = collapsed.get(entry.participant.id)
        if seen is None:
            collapsed[entry.participant.id] = entry
        elif entry.amount_cents is None or seen.amount_cents == entry.amount_cents:
            continue
        elif seen.amount_cents is None:
            seen.amount_cents = entry.amount_cents
        else:
            raise ConflictError(
                f"`{entry.participant.name}` appears as {role.value} with two different custom amounts: "
                f"{format_cents(seen.amount_cents)} and {format_cents(entry.amount_cents)}"
            )
    return list(collapsed.values())


def resolve(
    intent: ExpenseIntent,
    participants: Sequence[Participant],
    groups: Sequence[Group],
) -> ResolvedExpense:
    """Replace names, aliases and groups with registered participants.

    Each participant ends up at most once per role, at the position of its first
    occurrence; a custom amount wins over plain mentions of the same participant.
    """
    names = build_name_index(participants)
    by_id = {participant.id: participant for participant in participants}
    group_index = {group.name.casefold(): group for group in groups}

    creditors = _expand(intent.creditors, names, group_index, by_id)
    debtors = _expand(intent.debtors, names, group_index, by_id)

    return ResolvedExpense(
        total_cents=intent.total_cents,
        creditors=_collapse(creditors, Role.CREDITOR),
        debtors=_collapse(debtors, Role.DEBTOR),
        message=intent.message,
    )
