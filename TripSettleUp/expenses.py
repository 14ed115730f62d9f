"""
Expenses Module

This module handles expense records for the trip settlement service.

Features:
    - Expense and Share records with dict conversion
    - Accept camelCase wire keys (paidBy, participantId, tripId) and
      snake_case keys (payer_id, participant_id, trip_id)
    - Equal splitting for expenses that list participants instead of shares
    - Filtering expenses by trip

Data Model:
    Expense:
        - expense_id: string
        - amount: float (positive, currency-agnostic)
        - payer_id: string (participant who paid)
        - shares: list of Share
        - description: string or None
        - category: string (defaults to "Other")
        - date: string (YYYY-MM-DD) or None
        - trip_id: string or None

    Share:
        - participant_id: string
        - amount: float (non-negative)

Functions:
    equal_split: Split an amount into equal cent-exact shares.
    load_expenses: Normalise caller records into Expense objects.
    expenses_for_trip: Keep only the expenses belonging to one trip.
"""

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Optional


logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Other"

CENT = Decimal("0.01")


def _to_decimal(value, field_name: str) -> Decimal:
    """
    Convert a numeric value to Decimal via its string form.

    Raises:
        ValueError: If the value is not numeric.
    """
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number, got: {value!r}")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValueError(f"{field_name} must be a number, got: {value!r}")
    if not result.is_finite():
        raise ValueError(f"{field_name} must be a finite number, got: {value!r}")
    return result


def _first_present(data: Mapping, *keys, default=None):
    """Return the value of the first key present in data."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _date_part(value) -> Optional[str]:
    """Reduce an ISO timestamp or date string to YYYY-MM-DD."""
    if not value:
        return None
    return str(value)[:10]


class Share:
    """
    The portion of an expense attributed to one participant.

    Attributes:
        participant_id (str): Participant who owes this share.
        amount (float): Owed amount.
    """

    def __init__(self, participant_id: str, amount: float):
        self.participant_id = str(participant_id)
        self.amount = amount

    def to_dict(self) -> dict:
        return {"participantId": self.participant_id, "amount": self.amount}

    @classmethod
    def from_dict(cls, data: Mapping) -> "Share":
        """
        Create a Share from a dictionary.

        Accepts participantId, participant_id or user_id for the participant
        and amount or share for the owed amount.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"share must be a mapping, got: {type(data).__name__}")

        participant_id = _first_present(data, "participantId", "participant_id", "user_id")
        if participant_id is None:
            raise ValueError(f"share record has no participant id: {dict(data)}")

        amount = _first_present(data, "amount", "share", default=0)
        return cls(participant_id=participant_id, amount=float(_to_decimal(amount, "share amount")))

    def __repr__(self) -> str:
        return f"Share(participant='{self.participant_id}', amount={self.amount})"


class Expense:
    """
    Represents a single shared expense.

    Attributes:
        expense_id (str): Identifier of the expense.
        amount (float): Total amount paid.
        payer_id (str): Participant ID of who paid.
        shares (list[Share]): Who owes what.
        description (str | None): Optional description.
        category (str): Expense category.
        date (str | None): Date of expense (YYYY-MM-DD).
        trip_id (str | None): Trip the expense belongs to.
        issues (list[str]): Diagnostics for shares dropped while loading.
    """

    def __init__(
        self,
        expense_id: str,
        amount: float,
        payer_id: str,
        shares: list[Share],
        description: Optional[str] = None,
        category: str = DEFAULT_CATEGORY,
        date: Optional[str] = None,
        trip_id: Optional[str] = None,
        issues: Optional[list[str]] = None
    ):
        self.expense_id = str(expense_id)
        self.amount = amount
        self.payer_id = str(payer_id)
        self.shares = shares
        self.description = description
        self.category = category or DEFAULT_CATEGORY
        self.date = date
        self.trip_id = trip_id
        self.issues = issues or []

    def share_total(self) -> Decimal:
        """Sum of all share amounts."""
        return sum((Decimal(str(s.amount)) for s in self.shares), Decimal("0"))

    def share_of(self, participant_id: str) -> Decimal:
        """Total share held by one participant (0 if not listed)."""
        return sum(
            (Decimal(str(s.amount)) for s in self.shares if s.participant_id == participant_id),
            Decimal("0")
        )

    def to_dict(self) -> dict:
        """Convert expense to its wire representation."""
        return {
            "id": self.expense_id,
            "amount": self.amount,
            "paidBy": self.payer_id,
            "shares": [s.to_dict() for s in self.shares],
            "description": self.description,
            "category": self.category,
            "date": self.date,
            "tripId": self.trip_id
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "Expense":
        """
        Create an Expense from a dictionary.

        When "shares" is absent and "participants" lists participant IDs,
        the amount is split equally between them. Shares without a
        participant or with a non-numeric amount are dropped and noted in
        the expense's issues.

        Raises:
            TypeError: If data, or its shares list, has the wrong shape.
            ValueError: If amount or payer is missing or not numeric.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"expense must be a mapping, got: {type(data).__name__}")

        payer_id = _first_present(data, "paidBy", "paid_by", "payer_id")
        if payer_id is None:
            raise ValueError(f"expense record has no payer: {dict(data)}")

        amount = _to_decimal(_first_present(data, "amount"), "amount")
        expense_id = _first_present(data, "id", "expense_id", default="")
        issues = []

        raw_shares = _first_present(data, "shares", "expense_participants")
        if raw_shares is not None:
            if not isinstance(raw_shares, (list, tuple)):
                raise TypeError(f"shares must be a list, got: {type(raw_shares).__name__}")
            shares = []
            for raw_share in raw_shares:
                if isinstance(raw_share, Share):
                    shares.append(raw_share)
                    continue
                try:
                    shares.append(Share.from_dict(raw_share))
                except ValueError as e:
                    message = f"Expense {expense_id or '?'}: share skipped: {e}"
                    logger.warning("%s", message)
                    issues.append(message)
        else:
            members = data.get("participants") or []
            if not isinstance(members, (list, tuple)):
                raise TypeError(f"participants must be a list, got: {type(members).__name__}")
            shares = equal_split(amount, members)

        return cls(
            expense_id=expense_id,
            amount=float(amount),
            payer_id=payer_id,
            shares=shares,
            description=data.get("description"),
            category=data.get("category") or DEFAULT_CATEGORY,
            date=_date_part(_first_present(data, "date", "createdAt", "created_at")),
            trip_id=_first_present(data, "tripId", "trip_id"),
            issues=issues
        )

    def __repr__(self) -> str:
        """Return string representation of expense."""
        return f"Expense(id='{self.expense_id}', payer='{self.payer_id}', amount={self.amount}, shares={len(self.shares)})"


def equal_split(amount, participant_ids: list) -> list[Share]:
    """
    Split an amount equally between participants, exact to the cent.

    Each participant gets the amount divided by the head count, truncated to
    whole cents. The cents left over are handed out one at a time to the
    first participants in list order, so the shares always add up to the
    amount.

    Args:
        amount: Total to split.
        participant_ids: Participants sharing the amount.

    Returns:
        list[Share]: One share per participant, in list order.
    """
    if not participant_ids:
        return []

    total = _to_decimal(amount, "amount").quantize(CENT)
    count = len(participant_ids)
    base = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    leftover_cents = int((total - base * count) / CENT)

    shares = []
    for index, participant_id in enumerate(participant_ids):
        portion = base + CENT if index < leftover_cents else base
        shares.append(Share(participant_id=participant_id, amount=float(portion)))
    return shares


def load_expenses(records: list, problems: Optional[list[str]] = None) -> list[Expense]:
    """
    Normalise caller-supplied expense records.

    Records without a payer or a numeric amount are skipped and logged;
    the rest of the ledger is still loaded.

    Args:
        records: List of Expense instances or expense dicts.
        problems: Optional list that receives a message per skipped record.

    Returns:
        list[Expense]: Usable expenses in input order.

    Raises:
        TypeError: If records is not a list or tuple, or a record has the wrong shape.
    """
    if not isinstance(records, (list, tuple)):
        raise TypeError(f"expenses must be a list, got: {type(records).__name__}")

    expenses = []
    for index, record in enumerate(records):
        if isinstance(record, Expense):
            expenses.append(record)
            continue

        try:
            expenses.append(Expense.from_dict(record))
        except ValueError as e:
            message = f"Expense record {index} skipped: {e}"
            logger.warning("%s", message)
            if problems is not None:
                problems.append(message)

    return expenses


def expenses_for_trip(expenses: list[Expense], trip_id: Optional[str]) -> list[Expense]:
    """
    Keep only the expenses belonging to a trip.

    A trip_id of None returns every expense.
    """
    if trip_id is None:
        return list(expenses)
    return [e for e in expenses if e.trip_id is not None and str(e.trip_id) == str(trip_id)]
