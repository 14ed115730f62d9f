"""
Analytics Module

This module provides spending analytics and reporting for the trip
settlement service.

Features:
    - Category-wise expense breakdown
    - Per-participant payer totals
    - Daily spending and cumulative spending timeline
    - Highest spending day identification
    - Smart warnings for spending imbalances

Data Model:
    Input - participants: list of Participant objects or dicts with:
        - id: string
        - name: string (optional)

    Input - expenses: list of Expense objects or dicts with:
        - paidBy: string
        - amount: float
        - category: string (defaults to "Other")
        - date: string (YYYY-MM-DD, optional)

    Output - dict containing:
        - analytics: dict with category_breakdown, payer_totals, etc.
        - warnings: list of warning strings

Functions:
    generate_analytics: Generate analytics and warnings from expense data.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP

from participants import load_participants, participant_names
from expenses import load_expenses
from utils import format_currency


def _round_decimal(value: Decimal) -> float:
    """
    Round a Decimal to 2 decimal places and convert to float.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _parse_date(value: str):
    """Parse YYYY-MM-DD, returning None for missing or malformed dates."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def _cumulative_timeline(daily_totals: dict) -> dict:
    """
    Running spend total for every calendar day from first to last expense.

    Days without expenses carry the previous total forward.
    """
    if not daily_totals:
        return {}

    first = min(daily_totals)
    last = max(daily_totals)

    timeline = {}
    running = Decimal("0")
    current = first
    while current <= last:
        running += daily_totals.get(current, Decimal("0"))
        timeline[current.isoformat()] = _round_decimal(running)
        current += timedelta(days=1)
    return timeline


def generate_analytics(participants: list, expenses: list, currency_symbol: str = "₹") -> dict:
    """
    Generate analytics and smart warnings from expense data.

    Analytics computed:
        - category_breakdown: Total amount per category, largest first
        - payer_totals: Total amount paid by each participant who paid anything
        - daily_spending: Total amount spent per date
        - cumulative_spending: Running total for every day of the trip
        - highest_spending_day: Date and amount of maximum daily spend
        - total_spent: Sum of all expenses

    Warnings generated (rule-based):
        - If one participant paid > 40% of total trip cost
        - If one category > 50% of total spend
        - If a day's spend > 2x average daily spend

    Args:
        participants: List of participant records.
        expenses: List of expense records.
        currency_symbol: Symbol used in warning messages.

    Returns:
        dict: Contains two keys:
            - analytics: dict described above
            - warnings: list of warning strings

    Notes:
        - All amounts rounded to 2 decimal places
        - Expenses without a valid date are left out of the daily figures
    """
    participants = load_participants(participants)
    expenses = load_expenses(expenses)
    names = participant_names(participants)

    category_totals = defaultdict(Decimal)
    daily_totals = defaultdict(Decimal)
    payer_totals = {pid: Decimal("0") for pid in names}
    total_spent = Decimal("0")

    for expense in expenses:
        amount = Decimal(str(expense.amount))

        category_totals[expense.category] += amount
        total_spent += amount

        if expense.payer_id in payer_totals:
            payer_totals[expense.payer_id] += amount

        expense_date = _parse_date(expense.date)
        if expense_date is not None:
            daily_totals[expense_date] += amount

    category_breakdown = {
        category: _round_decimal(amount)
        for category, amount in sorted(category_totals.items(), key=lambda x: x[1], reverse=True)
    }

    daily_spending = {
        day.isoformat(): _round_decimal(amount)
        for day, amount in sorted(daily_totals.items())
    }

    highest_spending_day = {"date": None, "amount": 0.0}
    if daily_totals:
        max_date = max(sorted(daily_totals), key=daily_totals.get)
        highest_spending_day = {
            "date": max_date.isoformat(),
            "amount": _round_decimal(daily_totals[max_date])
        }

    payer_totals_rounded = {
        payer_id: _round_decimal(amount)
        for payer_id, amount in payer_totals.items()
        if amount > 0
    }

    analytics = {
        "category_breakdown": category_breakdown,
        "payer_totals": payer_totals_rounded,
        "daily_spending": daily_spending,
        "cumulative_spending": _cumulative_timeline(daily_totals),
        "highest_spending_day": highest_spending_day,
        "total_spent": _round_decimal(total_spent)
    }

    warnings = []
    total_label = format_currency(_round_decimal(total_spent), currency_symbol)

    # Rule 1: If one participant paid > 40% of total trip cost
    if total_spent > 0:
        for payer_id, amount in payer_totals.items():
            percentage = (amount / total_spent) * 100
            if percentage > 40:
                warnings.append(
                    f"Warning: {names.get(payer_id, payer_id)} paid {_round_decimal(percentage)}% of total expenses "
                    f"({format_currency(_round_decimal(amount), currency_symbol)} of {total_label})"
                )

    # Rule 2: If one category > 50% of total spend
    if total_spent > 0:
        for category, amount in category_totals.items():
            percentage = (amount / total_spent) * 100
            if percentage > 50:
                warnings.append(
                    f"Warning: '{category}' accounts for {_round_decimal(percentage)}% of total spend "
                    f"({format_currency(_round_decimal(amount), currency_symbol)} of {total_label})"
                )

    # Rule 3: If a day's spend > 2x average daily spend
    if len(daily_totals) > 1:
        dated_total = sum(daily_totals.values(), Decimal("0"))
        avg_daily = dated_total / Decimal(len(daily_totals))
        threshold = avg_daily * 2

        for day, amount in sorted(daily_totals.items()):
            if amount > threshold:
                warnings.append(
                    f"Warning: Spending on {day.isoformat()} ({format_currency(_round_decimal(amount), currency_symbol)}) "
                    f"exceeds 2x average daily spend ({format_currency(_round_decimal(avg_daily), currency_symbol)})"
                )

    return {
        "analytics": analytics,
        "warnings": warnings
    }
