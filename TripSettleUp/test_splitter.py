import copy
import logging

import pytest

from splitter import (
    calculate_balance_details,
    calculate_balances,
    check_expense_shares,
    collect_share_warnings,
)
from expenses import Expense, Share


def test_single_expense_split_between_two():
    participants = [{"id": "A", "name": "A"}, {"id": "B", "name": "B"}]
    expenses = [{
        "id": "E1", "amount": 100, "paidBy": "A",
        "shares": [{"participantId": "A", "amount": 50}, {"participantId": "B", "amount": 50}],
    }]

    assert calculate_balances(participants, expenses) == {"A": 50.0, "B": -50.0}


def test_two_payers_three_friends(friends, trip_expenses):
    balances = calculate_balances(friends, trip_expenses)

    assert balances == {"A": 40.0, "B": 10.0, "C": -50.0}


def test_short_shares_are_used_as_given(caplog):
    participants = [{"id": "A"}, {"id": "B"}]
    expenses = [{
        "id": "E9", "amount": 100, "paidBy": "A",
        "shares": [{"participantId": "A", "amount": 50}, {"participantId": "B", "amount": 49}],
    }]

    with caplog.at_level(logging.WARNING):
        balances = calculate_balances(participants, expenses)

    assert balances == {"A": 49.0, "B": -49.0}
    assert "E9" in caplog.text
    assert "shares total 99.0" in caplog.text


def test_empty_ledger():
    assert calculate_balances([], []) == {}


def test_idle_participants_are_zero(friends):
    assert calculate_balances(friends, []) == {"A": 0.0, "B": 0.0, "C": 0.0}


def test_payer_outside_shares_gets_full_amount():
    participants = [{"id": "A"}, {"id": "B"}, {"id": "C"}]
    expenses = [{
        "amount": 40, "paidBy": "A",
        "shares": [{"participantId": "B", "amount": 25}, {"participantId": "C", "amount": 15}],
    }]

    assert calculate_balances(participants, expenses) == {"A": 40.0, "B": -25.0, "C": -15.0}


def test_unknown_payer_still_debits_shares(caplog):
    participants = [{"id": "A"}, {"id": "B"}]
    expenses = [{
        "id": "E1", "amount": 30, "paidBy": "Z",
        "shares": [{"participantId": "A", "amount": 15}, {"participantId": "B", "amount": 15}],
    }]

    with caplog.at_level(logging.WARNING):
        balances = calculate_balances(participants, expenses)

    assert balances == {"A": -15.0, "B": -15.0}
    assert "payer Z is not a participant" in caplog.text


def test_unknown_share_holder_is_skipped():
    participants = [{"id": "A"}, {"id": "B"}]
    expenses = [{
        "amount": 30, "paidBy": "A",
        "shares": [
            {"participantId": "A", "amount": 10},
            {"participantId": "B", "amount": 10},
            {"participantId": "ghost", "amount": 10},
        ],
    }]

    balances = calculate_balances(participants, expenses)

    assert balances == {"A": 10.0, "B": -10.0}
    assert sum(balances.values()) == pytest.approx(0)


def test_balances_always_sum_to_zero():
    participants = [{"id": p} for p in "ABCD"]
    expenses = [
        {"amount": 100, "paidBy": "A", "participants": ["A", "B", "C"]},
        {"amount": 47.35, "paidBy": "D", "participants": ["A", "B", "C", "D"]},
        {"amount": 12.5, "paidBy": "C", "shares": [{"participantId": "D", "amount": 12}]},
    ]

    balances = calculate_balances(participants, expenses)

    assert sum(balances.values()) == pytest.approx(0, abs=1e-9)


def test_repeated_calls_are_identical_and_inputs_untouched(friends, trip_expenses):
    before = copy.deepcopy(trip_expenses)

    first = calculate_balances(friends, trip_expenses)
    second = calculate_balances(friends, trip_expenses)

    assert first == second
    assert trip_expenses == before


def test_accepts_expense_objects():
    expense = Expense("E1", 20.0, "A", [Share("A", 10.0), Share("B", 10.0)])

    assert calculate_balances([{"id": "A"}, {"id": "B"}], [expense]) == {"A": 10.0, "B": -10.0}


@pytest.mark.parametrize("participants, expenses", [
    ({"id": "A"}, []),
    ([{"id": "A"}], "E1"),
    (None, []),
])
def test_wrong_call_shape_fails_fast(participants, expenses):
    with pytest.raises(TypeError):
        calculate_balances(participants, expenses)


def test_check_expense_shares_tolerates_cent_drift():
    exact = Expense("E1", 100.0, "A", [Share("A", 33.34), Share("B", 33.33), Share("C", 33.33)])
    drift = Expense("E2", 100.0, "A", [Share("A", 33.33), Share("B", 33.33), Share("C", 33.33)])
    off = Expense("E3", 100.0, "A", [Share("A", 50.0)])

    assert check_expense_shares(exact) is None
    assert check_expense_shares(drift) is None
    assert "E3" in check_expense_shares(off)


def test_balance_details(friends, trip_expenses):
    details = calculate_balance_details(friends, trip_expenses)

    assert details["A"] == {"total_paid": 90.0, "total_share": 50.0, "net_balance": 40.0}
    assert details["C"] == {"total_paid": 0.0, "total_share": 50.0, "net_balance": -50.0}


def test_collect_share_warnings():
    participants = [{"id": "A"}, {"id": "B"}]
    expenses = [
        {"id": "E1", "amount": 10, "paidBy": "A", "shares": [{"participantId": "B", "amount": 9}]},
        {"id": "E2", "amount": 10, "paidBy": "Q", "shares": [{"participantId": "B", "amount": 10}]},
        {"id": "E3", "amount": 10, "paidBy": "A", "shares": [{"participantId": "X", "amount": 10}]},
    ]

    warnings = collect_share_warnings(participants, expenses)

    assert len(warnings) == 3
    assert "E1" in warnings[0]
    assert "payer Q" in warnings[1]
    assert "unknown participant X" in warnings[2]


def test_expense_without_payer_is_left_out():
    participants = [{"id": "A"}, {"id": "B"}]
    expenses = [
        {"id": "E1", "amount": 10, "paidBy": "A", "shares": [{"participantId": "B", "amount": 10}]},
        {"id": "E2", "amount": 5, "shares": [{"participantId": "A", "amount": 5}]},
    ]

    assert calculate_balances(participants, expenses) == {"A": 10.0, "B": -10.0}


@pytest.mark.parametrize("amount", [None, "ten", "NaN"])
def test_expense_without_numeric_amount_is_left_out(amount):
    participants = [{"id": "A"}, {"id": "B"}]
    expenses = [
        {"id": "E1", "amount": 10, "paidBy": "A", "shares": [{"participantId": "B", "amount": 10}]},
        {"id": "E2", "amount": amount, "paidBy": "B", "shares": [{"participantId": "A", "amount": 5}]},
    ]

    assert calculate_balances(participants, expenses) == {"A": 10.0, "B": -10.0}


def test_share_without_participant_is_left_out():
    participants = [{"id": "A"}, {"id": "B"}]
    expenses = [{
        "id": "E1", "amount": 10, "paidBy": "A",
        "shares": [{"amount": 5}, {"participantId": "B", "amount": 5}],
    }]

    assert calculate_balances(participants, expenses) == {"A": 5.0, "B": -5.0}


def test_participant_without_id_is_left_out():
    participants = [{"id": "A"}, {"name": "Nobody"}, {"id": "B"}]
    expenses = [{"id": "E1", "amount": 10, "paidBy": "A", "shares": [{"participantId": "B", "amount": 10}]}]

    assert calculate_balances(participants, expenses) == {"A": 10.0, "B": -10.0}


def test_collect_share_warnings_reports_skipped_records():
    participants = [{"id": "A"}, {"name": "Nobody"}, {"id": "B"}]
    expenses = [
        {"id": "E1", "amount": 10, "paidBy": "A", "shares": [{"amount": 5}, {"participantId": "B", "amount": 5}]},
        {"id": "E2", "amount": 5, "shares": [{"participantId": "A", "amount": 5}]},
    ]

    warnings = collect_share_warnings(participants, expenses)

    assert any("Participant record 1 skipped" in w for w in warnings)
    assert any("Expense record 1 skipped" in w for w in warnings)
    assert any("E1: share skipped" in w for w in warnings)
