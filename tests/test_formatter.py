from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from splitbook.db.models import Expense, ExpenseEntry, Role
from splitbook.services.formatter import (
    ALL_CLEAN,
    NOTHING_TO_SHOW,
    format_balance,
    format_cents,
    format_expense,
    format_list_expenses,
    format_simple_list,
)
from splitbook.services.settlement import Transfer


def _expense(message=None):
    return Expense(
        id=1,
        total_cents=4343,
        created_at=datetime(2023, 4, 30, 23, 30, tzinfo=timezone.utc),
        message=message,
        entries=[
            ExpenseEntry(participant_id=3, name="cccc", role=Role.CREDITOR, cents=4343),
            ExpenseEntry(participant_id=1, name="aa", role=Role.DEBTOR, cents=-4220),
            ExpenseEntry(participant_id=2, name="bbb", role=Role.DEBTOR, cents=-123),
        ],
    )


def test_format_cents():
    assert format_cents(0) == "0.00"
    assert format_cents(5) == "0.05"
    assert format_cents(123456) == "1234.56"
    assert format_cents(-150) == "-1.50"


def test_format_expense_uses_timezone():
    text = format_expense(_expense("pizza & beer"), ZoneInfo("Europe/Rome"))
    assert text == "💰 <b>1</b> (01.05.2023): cccc/43.43 <b>43.43</b> aa/42.20 bbb/1.23 - pizza &amp; beer"

    text = format_expense(_expense(), ZoneInfo("UTC"))
    assert text == "💰 <b>1</b> (30.04.2023): cccc/43.43 <b>43.43</b> aa/42.20 bbb/1.23"


def test_format_list_expenses():
    assert format_list_expenses([], ZoneInfo("UTC")) == NOTHING_TO_SHOW
    assert format_list_expenses([_expense(), _expense()], ZoneInfo("UTC")).count("\n") == 1


def test_format_balance():
    assert format_balance([]) == ALL_CLEAN

    text = format_balance(
        [
            Transfer(debtor="aa", creditor="bb", amount_cents=3400),
            Transfer(debtor="aacc", creditor="bb", amount_cents=2112),
        ]
    )
    assert text == (
        "💸 <code>aa  </code> <b>34.00</b> → <code>bb</code>\n"
        "💸 <code>aacc</code> <b>21.12</b> → <code>bb</code>"
    )


def test_format_simple_list():
    assert format_simple_list([]) == NOTHING_TO_SHOW
    assert format_simple_list(["g1", "g2"]) == "- g1\n- g2"
