import logging

import pytest

from expenses import Expense, Share, equal_split, expenses_for_trip, load_expenses
from participants import Participant, load_participants, participant_names


def test_expense_from_wire_format():
    expense = Expense.from_dict({
        "id": "E1",
        "amount": 100,
        "paidBy": "A",
        "shares": [{"participantId": "A", "amount": 60}, {"participantId": "B", "amount": 40}],
        "tripId": "goa",
        "createdAt": "2025-03-01T10:15:00.000Z",
    })

    assert expense.expense_id == "E1"
    assert expense.payer_id == "A"
    assert expense.amount == 100.0
    assert [(s.participant_id, s.amount) for s in expense.shares] == [("A", 60.0), ("B", 40.0)]
    assert expense.trip_id == "goa"
    assert expense.date == "2025-03-01"
    assert expense.category == "Other"


def test_expense_from_snake_case_records():
    expense = Expense.from_dict({
        "expense_id": 7,
        "amount": "12.50",
        "paid_by": 3,
        "expense_participants": [{"user_id": 3, "share": "6.25"}, {"user_id": 4, "share": 6.25}],
        "category": "Food",
    })

    assert expense.expense_id == "7"
    assert expense.payer_id == "3"
    assert expense.amount == 12.5
    assert [(s.participant_id, s.amount) for s in expense.shares] == [("3", 6.25), ("4", 6.25)]
    assert expense.category == "Food"


def test_expense_with_participant_list_is_split_equally():
    expense = Expense.from_dict({"amount": 100, "paidBy": "A", "participants": ["A", "B", "C"]})

    assert [s.amount for s in expense.shares] == [33.34, 33.33, 33.33]
    assert float(expense.share_total()) == 100.0


def test_to_dict_round_trips_through_from_dict():
    expense = Expense("E1", 30.0, "A", [Share("B", 30.0)], description="Cab", category="Transport")

    assert Expense.from_dict(expense.to_dict()).to_dict() == expense.to_dict()


def test_share_of():
    expense = Expense("E1", 30.0, "A", [Share("A", 10.0), Share("B", 20.0)])

    assert float(expense.share_of("B")) == 20.0
    assert float(expense.share_of("Z")) == 0.0


@pytest.mark.parametrize("amount, count", [(100, 3), (47.35, 4), (0.05, 3), (10, 1), (999.99, 7)])
def test_equal_split_is_cent_exact(amount, count):
    shares = equal_split(amount, [f"P{i}" for i in range(count)])

    assert len(shares) == count
    total_cents = sum(round(s.amount * 100) for s in shares)
    assert total_cents == round(amount * 100)
    assert max(s.amount for s in shares) - min(s.amount for s in shares) <= 0.01 + 1e-9


def test_equal_split_of_nobody():
    assert equal_split(50, []) == []


def test_records_without_payer_or_numeric_amount_are_skipped(caplog):
    problems = []

    with caplog.at_level(logging.WARNING):
        expenses = load_expenses([
            {"id": "E1", "amount": 10, "paidBy": "A", "participants": ["A", "B"]},
            {"id": "E2", "amount": 10, "shares": []},
            {"id": "E3", "amount": "ten", "paidBy": "A", "shares": []},
            {"id": "E4", "amount": None, "paidBy": "A", "shares": []},
        ], problems)

    assert [e.expense_id for e in expenses] == ["E1"]
    assert len(problems) == 3
    assert all("skipped" in message for message in problems)
    assert "no payer" in problems[0]
    assert "Expense record 2 skipped" in caplog.text


def test_share_without_participant_is_dropped():
    expense = Expense.from_dict({
        "id": "E5", "amount": 10, "paidBy": "A",
        "shares": [{"amount": 5}, {"participantId": "B", "amount": 5}],
    })

    assert [(s.participant_id, s.amount) for s in expense.shares] == [("B", 5.0)]
    assert len(expense.issues) == 1
    assert "E5" in expense.issues[0]


def test_shares_must_be_a_list():
    with pytest.raises(TypeError):
        Expense.from_dict({"amount": 10, "paidBy": "A", "shares": {"participantId": "A"}})


def test_load_expenses_requires_a_list():
    with pytest.raises(TypeError):
        load_expenses({"amount": 10, "paidBy": "A"})


def test_expenses_for_trip():
    expenses = load_expenses([
        {"id": "E1", "amount": 10, "paidBy": "A", "tripId": 1, "participants": ["A"]},
        {"id": "E2", "amount": 10, "paidBy": "A", "tripId": 2, "participants": ["A"]},
        {"id": "E3", "amount": 10, "paidBy": "A", "participants": ["A"]},
    ])

    assert [e.expense_id for e in expenses_for_trip(expenses, "1")] == ["E1"]
    assert [e.expense_id for e in expenses_for_trip(expenses, None)] == ["E1", "E2", "E3"]
    assert expenses_for_trip(expenses, "9") == []


def test_load_participants_drops_duplicate_ids(caplog):
    participants = load_participants([
        {"id": "A", "name": "Lakshay"},
        {"participant_id": "B", "name": "Siddhu"},
        {"id": "A", "name": "Someone else"},
        Participant("C"),
    ])

    assert participants == [Participant("A", "Lakshay"), Participant("B", "Siddhu"), Participant("C", "C")]
    assert "Duplicate participant id A" in caplog.text


def test_participant_without_id_is_skipped(caplog):
    problems = []

    with caplog.at_level(logging.WARNING):
        participants = load_participants([{"name": "Nobody"}, {"id": "A"}], problems)

    assert participants == [Participant("A")]
    assert len(problems) == 1
    assert "Participant record 0 skipped" in problems[0]
    assert "Participant record 0 skipped" in caplog.text


def test_participant_record_must_be_a_mapping():
    with pytest.raises(TypeError):
        load_participants(["A"])


def test_participant_names():
    names = participant_names(load_participants([{"id": 1, "name": "Vaishakh"}, {"id": 2}]))

    assert names == {"1": "Vaishakh", "2": "2"}
