"""
Utilities Module

This module provides transparency reports and display helpers for the
trip settlement service.

Features:
    - Per-participant expense breakdown explanations
    - Currency formatting with Indian digit grouping

Data Model:
    Input - participants: list of Participant objects or dicts
    Input - expenses: list of Expense objects or dicts
    Input - balances: dict from calculate_balance_details() with:
        - total_paid: float
        - total_share: float
        - net_balance: float

Functions:
    explain_participant_share: Get detailed breakdown for one participant.
    explain_all_participants: Get detailed breakdown for all participants.
    format_currency: Format amount with currency symbol.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from participants import load_participants, participant_names
from expenses import load_expenses
from splitter import calculate_balance_details


def _round_decimal(value: Decimal) -> float:
    """
    Round a Decimal to 2 decimal places and convert to float.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def explain_participant_share(
    participant_id: str,
    participants: list,
    expenses: list,
    balances: Optional[dict] = None
) -> dict:
    """
    Generate detailed explanation of how a participant's balance was built.

    For each expense the participant paid for or holds a share in:
        - Shows expense details (id, description, category, date, total amount)
        - Shows who paid and who shares the expense
        - Shows the participant's own share

    Args:
        participant_id: ID of the participant to explain.
        participants: List of participant records.
        expenses: List of expense records.
        balances: Output from calculate_balance_details(); computed when omitted.

    Returns:
        dict: Explanation containing:
            - participant_id: string
            - name: string
            - expense_contributions: list of dicts with expense breakdown
            - total_share: float
            - total_paid: float
            - net_balance: float
    """
    participants = load_participants(participants)
    expenses = load_expenses(expenses)
    names = participant_names(participants)

    if participant_id not in names:
        return {
            "participant_id": participant_id,
            "name": None,
            "expense_contributions": [],
            "total_share": 0.0,
            "total_paid": 0.0,
            "net_balance": 0.0,
            "error": f"Participant {participant_id} not found"
        }

    if balances is None:
        balances = calculate_balance_details(participants, expenses)

    balance_info = balances.get(participant_id, {
        "total_paid": 0.0,
        "total_share": 0.0,
        "net_balance": 0.0
    })

    expense_contributions = []

    for expense in expenses:
        sharers = [s.participant_id for s in expense.shares]
        paid = expense.payer_id == participant_id

        if not paid and participant_id not in sharers:
            continue

        expense_contributions.append({
            "expense_id": expense.expense_id,
            "description": expense.description,
            "category": expense.category,
            "date": expense.date,
            "total_expense_amount": _round_decimal(Decimal(str(expense.amount))),
            "paid_by": expense.payer_id,
            "paid_by_participant": paid,
            "shared_with": sharers,
            "participant_share": _round_decimal(expense.share_of(participant_id))
        })

    return {
        "participant_id": participant_id,
        "name": names[participant_id],
        "expense_contributions": expense_contributions,
        "total_share": balance_info["total_share"],
        "total_paid": balance_info["total_paid"],
        "net_balance": balance_info["net_balance"]
    }


def explain_all_participants(participants: list, expenses: list, balances: Optional[dict] = None) -> list[dict]:
    """
    Generate detailed explanations for all participants.

    Includes participants with no expenses, in participant order.
    """
    participants = load_participants(participants)
    expenses = load_expenses(expenses)

    if balances is None:
        balances = calculate_balance_details(participants, expenses)

    return [
        explain_participant_share(p.participant_id, participants, expenses, balances)
        for p in participants
    ]


def format_currency(amount: float, symbol: str = "₹") -> str:
    """
    Format a monetary amount with the currency symbol and Indian digit grouping.

    Args:
        amount: The amount to format.
        symbol: Currency symbol (default: ₹).

    Returns:
        str: Formatted string like "₹1,23,456.78" or "-₹50.00".
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")

    # Last three digits, then groups of two
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    return f"{sign}{symbol}{whole}.{fraction}"
