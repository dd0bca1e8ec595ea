"""Parsing of the text that follows a bot command.

An expense looks like ``creditor... amount debtor... - message``, for example
``alice bob/5 12.50 #flat carl/0 - groceries``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Union

from splitbook.services.errors import InvalidSyntaxError

NAME_RE = re.compile(r"[^\W\d_][^\W_]*")
AMOUNT_RE = re.compile(r"(\d+)(?:[.,](\d+))?")
TOKEN_RE = re.compile(r"\S+")

# Largest value of a BIGINT column.
MAX_CENTS = 2**63 - 1

EXPENSE_EXAMPLE = "p1 p2/2.2 12 p1/1 p3 #group - dinner"


@dataclass(slots=True)
class ParticipantToken:
    name: str
    amount_cents: Optional[int] = None


@dataclass(slots=True)
class GroupToken:
    name: str
    amount_cents: Optional[int] = None


Token = Union[ParticipantToken, GroupToken]


@dataclass(slots=True)
class ExpenseIntent:
    total_cents: int
    creditors: list[Token] = field(default_factory=list)
    debtors: list[Token] = field(default_factory=list)
    message: Optional[str] = None


def _syntax_error(reason: str) -> InvalidSyntaxError:
    return InvalidSyntaxError(
        f"invalid expense syntax: {reason}; example of valid syntax: {EXPENSE_EXAMPLE}"
    )


def parse_amount(text: str) -> int:
    """Convert ``12``, ``12.5``, ``12,50`` or ``12.999`` into cents, truncating extra digits."""
    match = AMOUNT_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"`{text}` is not a valid amount")
    whole, fraction = match.group(1), match.group(2) or ""
    cents = int(whole) * 100 + int(fraction[:2].ljust(2, "0"))
    if cents > MAX_CENTS:
        raise ValueError(f"`{text}` is too large")
    return cents


def is_valid_name(name: str) -> bool:
    # \d only covers decimal digits, so `²abc` would pass the pattern alone
    return NAME_RE.fullmatch(name) is not None and name[0].isalpha()


def validate_name(name: str, kind: str = "participant") -> str:
    if not is_valid_name(name):
        raise InvalidSyntaxError(
            f"invalid {kind} name `{name}`: names must be alphanumeric and must start with a letter"
        )
    return name.casefold()


def _parse_item(raw: str) -> Token:
    head, slash, tail = raw.partition("/")

    amount_cents: Optional[int] = None
    if slash:
        try:
            amount_cents = parse_amount(tail)
        except ValueError:
            raise _syntax_error(f"invalid custom amount `{tail}` in `{raw}`") from None

    if head.startswith("#"):
        name = head[1:]
        if not is_valid_name(name):
            raise _syntax_error(f"invalid group name `{name}`")
        return GroupToken(name=name.casefold(), amount_cents=amount_cents)

    name = head[1:] if head.startswith("@") else head
    if not is_valid_name(name):
        raise _syntax_error(f"invalid participant name `{name}`")
    return ParticipantToken(name=name.casefold(), amount_cents=amount_cents)


def parse_expense(text: str) -> ExpenseIntent:
    creditors: list[Token] = []
    debtors: list[Token] = []
    total_cents: Optional[int] = None
    message: Optional[str] = None

    for match in TOKEN_RE.finditer(text):
        raw = match.group(0)

        if raw.startswith("-"):
            if raw != "-" or text[match.end():match.end() + 1] != " ":
                raise _syntax_error("the message must be introduced by `- `")
            message = text[match.end() + 1:].strip() or None
            break

        if AMOUNT_RE.fullmatch(raw):
            if total_cents is not None:
                raise _syntax_error(f"unexpected second amount `{raw}`")
            if not creditors:
                raise _syntax_error("at least one creditor must precede the amount")
            try:
                total_cents = parse_amount(raw)
            except ValueError:
                raise _syntax_error(f"the amount `{raw}` is too large") from None
            continue

        item = _parse_item(raw)
        if total_cents is None:
            creditors.append(item)
        else:
            debtors.append(item)

    if total_cents is None:
        raise _syntax_error("the total amount is missing")

    return ExpenseIntent(
        total_cents=total_cents,
        creditors=creditors,
        debtors=debtors,
        message=message,
    )


def parse_names(text: Optional[str], kind: str = "participant") -> list[str]:
    """Parse a whitespace separated list of names, dropping repeated ones."""
    names: list[str] = []
    for raw in (text or "").split():
        name = validate_name(raw[1:] if raw.startswith("@") else raw, kind)
        if name not in names:
            names.append(name)
    if not names:
        raise InvalidSyntaxError(f"there must be at least one {kind}. Format must be '{kind}_name [{kind}_name...]'")
    return names


def parse_name_and_rest(
    text: Optional[str],
    kind: str,
    rest_kind: str,
    *,
    require_rest: bool = False,
) -> tuple[str, list[str]]:
    parts = (text or "").split()
    if not parts:
        raise InvalidSyntaxError(f"missing {kind} name. Format must be '{kind}_name [{rest_kind}_name...]'")

    head = parts[0]
    if kind == "participant" and head.startswith("@"):
        head = head[1:]
    head = validate_name(head, kind)
    rest: list[str] = []
    if len(parts) > 1:
        rest = parse_names(" ".join(parts[1:]), rest_kind)
    elif require_rest:
        raise InvalidSyntaxError(f"there must be at least one {rest_kind}. Format must be '{kind}_name {rest_kind}_name [{rest_kind}_name...]'")
    return head, rest


def parse_expense_id(text: Optional[str]) -> int:
    value = (text or "").strip()
    try:
        expense_id = int(value)
    except ValueError:
        raise InvalidSyntaxError(f"invalid value `{value}` for expense ID: expected an integer") from None
    if expense_id <= 0:
        raise InvalidSyntaxError(f"invalid value `{value}` for expense ID: expected a positive integer")
    return expense_id


def parse_offset(text: Optional[str]) -> int:
    value = (text or "0").strip()
    try:
        offset = int(value)
    except ValueError:
        raise InvalidSyntaxError(f"invalid value `{value}` for list offset: expected an integer") from None
    return max(offset, 0)
