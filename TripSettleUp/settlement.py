"""
Settlement Module

This module turns balances and expenses into settlement transactions.

Features:
    - net-greedy: net every participant to one balance, then match the
      largest debtor with the largest creditor until everyone is settled
    - pairwise-cancellation: keep who-owes-whom debts from each expense
      and cancel reciprocal debts between each pair
    - Strategy selection and a SettlementEngine facade
    - Handle rounding safely

Data Model:
    Input - balances (dict keyed by participant_id):
        - float, or a dict with net_balance (positive = owed money,
          negative = owes money)

    Output - list of settlement transactions:
        - from: string (debtor who pays)
        - to: string (creditor who receives)
        - amount: float (rounded to 2 decimal places)

Functions:
    optimize_settlements: Greedy settlement plan from net balances.
    cancel_pairwise_debts: Settlement plan from cancelled pairwise debts.
    compute_settlements: Run one named strategy over a ledger.
"""

import logging
from collections.abc import Mapping
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from config.settings import NET_GREEDY, PAIRWISE_CANCELLATION, STRATEGIES
from participants import load_participants, participant_ids
from expenses import load_expenses
from splitter import calculate_balances, collect_share_warnings


logger = logging.getLogger(__name__)

# Threshold for ignoring tiny rounding differences
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


def _settlement(debtor_id: str, creditor_id: str, amount: Decimal) -> dict:
    return {"from": debtor_id, "to": creditor_id, "amount": _round_decimal(amount)}


def _net_value(balance) -> Decimal:
    """Accept either a bare number or a balance-details dict."""
    if isinstance(balance, Mapping):
        balance = balance["net_balance"]
    return Decimal(str(balance))


def optimize_settlements(balances: Mapping, epsilon: Decimal = EPSILON) -> list[dict]:
    """
    Convert net balances into minimal settlement transactions.

    Uses a greedy algorithm:
        1. Separate participants into debtors (balance < 0) and creditors (balance > 0)
        2. Sort debtors by largest debt first
        3. Sort creditors by largest credit first
        4. Iteratively match debtors with creditors:
           - Take the largest debtor and largest creditor
           - Settle the minimum of their remaining amounts
           - Update remaining amounts
           - Repeat until either side is cleared

    Sorting is stable, so participants with equal amounts keep the order
    they have in the balances mapping.

    Args:
        balances: Mapping of participant_id to net balance (or to a dict
            holding net_balance).
        epsilon: Amounts below this are not recorded and count as settled.

    Returns:
        list[dict]: Settlement transactions in matching order, each containing:
            - from: string (debtor who pays)
            - to: string (creditor who receives)
            - amount: float (rounded to 2 decimal places)

    Raises:
        TypeError: If balances is not a mapping.

    Notes:
        - At most len(creditors) + len(debtors) - 1 transactions
        - Amounts are rounded when recorded, remainders are kept exact
        - Does NOT modify input balances
    """
    if not isinstance(balances, Mapping):
        raise TypeError(f"balances must be a mapping, got: {type(balances).__name__}")

    # Amounts stored as positive magnitudes on both sides
    debtors = []
    creditors = []

    for participant_id, balance in balances.items():
        net = _net_value(balance)

        if net < 0:
            debtors.append([participant_id, -net])
        elif net > 0:
            creditors.append([participant_id, net])

    debtors.sort(key=lambda x: x[1], reverse=True)
    creditors.sort(key=lambda x: x[1], reverse=True)

    settlements = []

    debtor_idx = 0
    creditor_idx = 0

    while debtor_idx < len(debtors) and creditor_idx < len(creditors):
        debtor_id, debt_amount = debtors[debtor_idx]
        creditor_id, credit_amount = creditors[creditor_idx]

        settlement_amount = min(debt_amount, credit_amount)

        # Skip if settlement amount is negligible (rounding artifact)
        if settlement_amount >= epsilon:
            settlements.append(_settlement(debtor_id, creditor_id, settlement_amount))

        debtors[debtor_idx][1] = debt_amount - settlement_amount
        creditors[creditor_idx][1] = credit_amount - settlement_amount

        if debtors[debtor_idx][1] < epsilon:
            debtor_idx += 1

        if creditors[creditor_idx][1] < epsilon:
            creditor_idx += 1

    return settlements


def cancel_pairwise_debts(participants: list, expenses: list, epsilon: Decimal = EPSILON) -> list[dict]:
    """
    Build a settlement plan from direct debts between pairs of participants.

    Unlike optimize_settlements this never routes money through someone who
    did not share an expense with both parties:
        1. Every non-payer share adds a debt from its holder to the payer
        2. For each pair owing each other, the smaller debt is cancelled
           against the larger one
        3. Every remaining debt above epsilon becomes a transaction

    Args:
        participants: List of participant records.
        expenses: List of expense records.
        epsilon: Debts at or below this are dropped.

    Returns:
        list[dict]: Settlement transactions in the order pairs first
            appeared in the expenses.

    Raises:
        TypeError: If participants or expenses are not lists.

    Notes:
        - Shares or payers that are not participants are skipped
        - Never emits both A -> B and B -> A
    """
    known_ids = set(participant_ids(load_participants(participants)))

    # (debtor, creditor) -> amount owed
    debts = {}

    for expense in load_expenses(expenses):
        payer_id = expense.payer_id
        if payer_id not in known_ids:
            continue

        for share in expense.shares:
            if share.participant_id == payer_id or share.participant_id not in known_ids:
                continue

            key = (share.participant_id, payer_id)
            debts[key] = debts.get(key, Decimal("0")) + Decimal(str(share.amount))

    for debtor_id, creditor_id in list(debts):
        forward = debts[(debtor_id, creditor_id)]
        reverse = debts.get((creditor_id, debtor_id), Decimal("0"))

        if forward > 0 and reverse > 0:
            if forward >= reverse:
                debts[(debtor_id, creditor_id)] = forward - reverse
                debts[(creditor_id, debtor_id)] = Decimal("0")
            else:
                debts[(debtor_id, creditor_id)] = Decimal("0")
                debts[(creditor_id, debtor_id)] = reverse - forward

    return [
        _settlement(debtor_id, creditor_id, amount)
        for (debtor_id, creditor_id), amount in debts.items()
        if amount > epsilon
    ]


def compute_settlements(
    participants: list,
    expenses: list,
    strategy: str = NET_GREEDY,
    epsilon: Decimal = EPSILON
) -> list[dict]:
    """
    Compute a settlement plan with exactly one named strategy.

    Args:
        participants: List of participant records.
        expenses: List of expense records.
        strategy: "net-greedy" or "pairwise-cancellation".
        epsilon: Tolerance passed to the strategy.

    Raises:
        ValueError: If strategy is not a known strategy name.
    """
    if strategy == NET_GREEDY:
        return optimize_settlements(calculate_balances(participants, expenses, epsilon), epsilon)
    if strategy == PAIRWISE_CANCELLATION:
        return cancel_pairwise_debts(participants, expenses, epsilon)
    raise ValueError(f"strategy must be one of {STRATEGIES}, got: {strategy}")


class SettlementEngine:
    """
    Balances and settlement plans for one configured strategy.

    The engine holds no ledger state; every call works on the participants
    and expenses passed in.
    """

    def __init__(self, strategy: str = NET_GREEDY, epsilon: Decimal = EPSILON):
        if strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {STRATEGIES}, got: {strategy}")
        self.strategy = strategy
        self.epsilon = Decimal(str(epsilon))

    @classmethod
    def from_settings(cls, settings, strategy: Optional[str] = None) -> "SettlementEngine":
        """Engine with the configured epsilon and the given or configured strategy."""
        return cls(strategy=strategy or settings.strategy, epsilon=settings.epsilon)

    def compute_balances(self, participants: list, expenses: list) -> dict[str, float]:
        return calculate_balances(participants, expenses, self.epsilon)

    def compute_settlements(self, participants: list, expenses: list) -> list[dict]:
        return compute_settlements(participants, expenses, self.strategy, self.epsilon)

    def settle(self, participants: list, expenses: list) -> dict:
        """
        Compute balances, settlements and data-quality warnings together.

        Returns:
            dict: balances, settlements, warnings and the strategy used.
        """
        problems = []
        participants = load_participants(participants, problems)
        expenses = load_expenses(expenses, problems)

        balances = calculate_balances(participants, expenses, self.epsilon)
        if self.strategy == NET_GREEDY:
            settlements = optimize_settlements(balances, self.epsilon)
        else:
            settlements = cancel_pairwise_debts(participants, expenses, self.epsilon)

        logger.debug(
            "Settled %d participants, %d expenses into %d transactions (%s)",
            len(participants), len(expenses), len(settlements), self.strategy
        )

        return {
            "balances": balances,
            "settlements": settlements,
            "warnings": problems + collect_share_warnings(participants, expenses, self.epsilon),
            "strategy": self.strategy
        }

    def __repr__(self) -> str:
        return f"SettlementEngine(strategy='{self.strategy}', epsilon={self.epsilon})"
