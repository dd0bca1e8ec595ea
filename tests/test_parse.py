import pytest

from splitbook.services.errors import InvalidSyntaxError
from splitbook.utils.parse import (
    GroupToken,
    ParticipantToken,
    is_valid_name,
    parse_amount,
    parse_expense,
    parse_expense_id,
    parse_name_and_rest,
    parse_names,
)


def test_parse_amount_truncates():
    assert parse_amount("3.45") == 345
    assert parse_amount("3,45") == 345
    assert parse_amount("3") == 300
    assert parse_amount("3.4") == 340
    assert parse_amount("0.5") == 50
    assert parse_amount("12.999") == 1299


def test_parse_amount_rejects_garbage():
    for value in ("", "-3", "+3", "3.", "3.aa", "1e3", "99999999999999999999"):
        with pytest.raises(ValueError):
            parse_amount(value)


def test_parse_amount_bigint_limit():
    assert parse_amount("92233720368547758.07") == 2**63 - 1
    with pytest.raises(ValueError):
        parse_amount("92233720368547758.08")


def test_names_start_with_a_letter():
    assert is_valid_name("ànna2")
    assert not is_valid_name("²abc")
    assert not is_valid_name("①abc")
    assert not is_valid_name("2abc")


def test_parse_expense_full():
    intent = parse_expense(
        " @Creditor1 creditòr2/21.1 34.3   Debtor1 debtor2/3  @debtor3/1 #Group  - yoh"
    )

    assert intent.total_cents == 3430
    assert intent.creditors == [
        ParticipantToken("creditor1"),
        ParticipantToken("creditòr2", 2110),
    ]
    assert intent.debtors == [
        ParticipantToken("debtor1"),
        ParticipantToken("debtor2", 300),
        ParticipantToken("debtor3", 100),
        GroupToken("group"),
    ]
    assert intent.message == "yoh"


def test_parse_expense_worked_example():
    intent = parse_expense("p1 12 p1/0 p2 p3")
    assert intent.total_cents == 1200
    assert intent.creditors == [ParticipantToken("p1")]
    assert intent.debtors == [ParticipantToken("p1", 0), ParticipantToken("p2"), ParticipantToken("p3")]
    assert intent.message is None


def test_parse_expense_multiline_message():
    intent = parse_expense("c1\nc2/1\n34.3\nd1 - message\non\nmany lines")
    assert len(intent.creditors) == 2
    assert intent.debtors == [ParticipantToken("d1")]
    assert intent.message == "message\non\nmany lines"


def test_parse_expense_keeps_group_amount_for_resolver():
    intent = parse_expense("a 10 #g/5")
    assert intent.debtors == [GroupToken("g", 500)]


@pytest.mark.parametrize(
    "text",
    [
        "c1 d1",
        "12 d1",
        "c1 34.3 d1 d2 123",
        "c1 12d d1",
        "c1 12 d1/3.aa",
        "c1 12 1d",
        "c1 12 #1g",
        "c1 12 d1 -note",
        "c1 12 d1 -",
        "c_1 12 d1",
        "a 99999999999999999999 b",
        "a 10 b/99999999999999999999",
        "²a 10 b",
        "",
    ],
)
def test_parse_expense_rejects(text):
    with pytest.raises(InvalidSyntaxError):
        parse_expense(text)


def test_parse_names():
    assert parse_names("Alice @bob alice") == ["alice", "bob"]
    with pytest.raises(InvalidSyntaxError):
        parse_names("   ")
    with pytest.raises(InvalidSyntaxError):
        parse_names("alice 2bob")


def test_parse_name_and_rest():
    assert parse_name_and_rest(" g1  p1 P2 ", "group", "participant") == ("g1", ["p1", "p2"])
    assert parse_name_and_rest("g1", "group", "participant") == ("g1", [])
    with pytest.raises(InvalidSyntaxError):
        parse_name_and_rest("g1", "group", "participant", require_rest=True)
    with pytest.raises(InvalidSyntaxError):
        parse_name_and_rest(None, "group", "participant")


def test_parse_expense_id():
    assert parse_expense_id(" 12 ") == 12
    for value in (None, "abc", "0", "-3"):
        with pytest.raises(InvalidSyntaxError):
            parse_expense_id(value)
