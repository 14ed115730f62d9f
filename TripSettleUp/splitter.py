"""
Splitter Module

This module computes per-participant balances from shared expenses.

Features:
    - Net balance per participant from explicit expense shares
    - Share/amount consistency diagnostics
    - Paid / share / net totals for transparency reports
    - Decimal-safe arithmetic

Data Model:
    Input - participants: list of Participant objects or dicts with:
        - id: string
        - name: string

    Input - expenses: list of Expense objects or dicts with:
        - id: string
        - amount: float
        - paidBy: string
        - shares: list of {participantId, amount}

    Output - balances (dict keyed by participant_id):
        - float (positive = is owed money, negative = owes money)

Functions:
    calculate_balances: Calculate each participant's net balance.
    calculate_balance_details: Paid, share and net totals per participant.
    check_expense_shares: Diagnose an expense whose shares miss its amount.
    collect_share_warnings: All data-quality diagnostics for a ledger.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterator, Optional

from participants import load_participants, participant_ids
from expenses import Expense, load_expenses


logger = logging.getLogger(__name__)

# Tolerance for share totals that drift from the expense amount
EPSILON = Decimal("0.01")


def _round_decimal(value: Decimal) -> float:
    """
    Round a Decimal to 2 decimal places and convert to float.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def check_expense_shares(expense: Expense, epsilon: Decimal = EPSILON) -> Optional[str]:
    """
    Check that an expense's shares add up to its amount.

    Args:
        expense: Expense to check.
        epsilon: Allowed absolute difference.

    Returns:
        str | None: A diagnostic message, or None when the shares are consistent.
    """
    amount = Decimal(str(expense.amount))
    share_total = expense.share_total()

    if abs(amount - share_total) > epsilon:
        return (
            f"Expense {expense.expense_id or '?'}: shares total {_round_decimal(share_total)} "
            f"but amount is {_round_decimal(amount)}"
        )
    return None


def _expense_deltas(expense: Expense, known_ids: set[str]) -> Iterator[tuple[str, Decimal]]:
    """
    Yield (participant_id, balance change) pairs for one expense.

    Every known participant other than the payer is debited their share.
    The payer, when known, is credited with the total debited from the
    others, which equals the amount minus the payer's own share whenever
    the shares add up to the amount.
    """
    credited = Decimal("0")

    for share in expense.shares:
        if share.participant_id == expense.payer_id:
            continue
        if share.participant_id not in known_ids:
            logger.warning(
                "Expense %s: share for unknown participant %s skipped",
                expense.expense_id, share.participant_id
            )
            continue

        owed = Decimal(str(share.amount))
        credited += owed
        yield share.participant_id, -owed

    if expense.payer_id in known_ids:
        yield expense.payer_id, credited
    else:
        logger.warning("Expense %s: payer %s is not a participant", expense.expense_id, expense.payer_id)


def _accumulate(participants: list, expenses: list, epsilon: Decimal) -> tuple[list, list, dict]:
    """Normalise inputs and sum balance changes as Decimals."""
    participants = load_participants(participants)
    expenses = load_expenses(expenses)

    balances = {pid: Decimal("0") for pid in participant_ids(participants)}
    known_ids = set(balances)

    for expense in expenses:
        mismatch = check_expense_shares(expense, epsilon)
        if mismatch:
            logger.warning("%s", mismatch)

        for participant_id, delta in _expense_deltas(expense, known_ids):
            balances[participant_id] += delta

    return participants, expenses, balances


def calculate_balances(participants: list, expenses: list, epsilon: Decimal = EPSILON) -> dict[str, float]:
    """
    Calculate each participant's net balance from expenses.

    For each expense:
        1. Every other participant listed in the shares is debited their share
        2. The payer is credited with what they fronted for the others
           (amount minus their own share, 0 own share if not listed)

    Args:
        participants: List of participant records (objects or dicts).
        expenses: List of expense records (objects or dicts).
        epsilon: Tolerance for share/amount mismatch diagnostics.

    Returns:
        dict: participant_id -> net balance, one entry per participant.
            - Positive = participant is owed money
            - Negative = participant owes money

    Raises:
        TypeError: If participants or expenses are not lists.

    Notes:
        - Shares that miss the amount are used as given and logged; the
          payer is then credited the share total, not the amount
        - Records without an id, payer or numeric amount are skipped and logged
        - Unknown payers earn no credit; unknown share holders are skipped
        - Does NOT modify its inputs
    """
    _, _, balances = _accumulate(participants, expenses, epsilon)
    return {participant_id: float(balance) for participant_id, balance in balances.items()}


def calculate_balance_details(participants: list, expenses: list, epsilon: Decimal = EPSILON) -> dict:
    """
    Calculate paid, share and net totals per participant.

    Returns:
        dict: Dictionary keyed by participant_id containing:
            - total_paid: float (sum of expenses this participant paid)
            - total_share: float (sum of this participant's own shares)
            - net_balance: float (as returned by calculate_balances)
    """
    participants, expenses, balances = _accumulate(participants, expenses, epsilon)

    totals = {pid: {"paid": Decimal("0"), "share": Decimal("0")} for pid in balances}

    for expense in expenses:
        if expense.payer_id in totals:
            totals[expense.payer_id]["paid"] += Decimal(str(expense.amount))
        for share in expense.shares:
            if share.participant_id in totals:
                totals[share.participant_id]["share"] += Decimal(str(share.amount))

    return {
        participant_id: {
            "total_paid": _round_decimal(totals[participant_id]["paid"]),
            "total_share": _round_decimal(totals[participant_id]["share"]),
            "net_balance": _round_decimal(balance)
        }
        for participant_id, balance in balances.items()
    }


def collect_share_warnings(participants: list, expenses: list, epsilon: Decimal = EPSILON) -> list[str]:
    """
    Collect data-quality diagnostics for a ledger without computing balances.

    Reports skipped participant and expense records, dropped shares,
    share/amount mismatches, unknown payers and shares held by unknown
    participants, one message each.
    """
    warnings = []
    known_ids = set(participant_ids(load_participants(participants, warnings)))
    loaded = load_expenses(expenses, warnings)

    for expense in loaded:
        warnings.extend(expense.issues)

        mismatch = check_expense_shares(expense, epsilon)
        if mismatch:
            warnings.append(mismatch)

        if expense.payer_id not in known_ids:
            warnings.append(f"Expense {expense.expense_id or '?'}: payer {expense.payer_id} is not a participant")

        for share in expense.shares:
            if share.participant_id not in known_ids:
                warnings.append(
                    f"Expense {expense.expense_id or '?'}: share for unknown participant "
                    f"{share.participant_id} was ignored"
                )

    return warnings
