"""
Settlement Module

This module reduces net balances to a short list of peer-to-peer transfers
that would bring every balance to zero.

Features:
    - Greedy debtor/creditor matching in balance insertion order
    - Tolerance for sub-cent rounding noise
    - Two-sided split for the settle-up view ("owes you" / "you owe")
    - Conversion of a confirmed transfer into a Settlement record

Data Model:
    Input - balances (dict keyed by member_id):
        - net balance as Decimal, int or float
          (positive = owed money, negative = owes money)

    Output - list of SettlementTransfer:
        - from_id / from_name: debtor who pays
        - to_id / to_name: creditor who receives
        - amount: float (rounded to 2 decimal places)

Functions:
    simplify_debts: Convert balances into settlement transfers.
    split_for_member: Partition transfers into owed-to-me and I-owe lists.
    settle_up: Run the whole pipeline for one member's settle-up view.
    to_settlement: Materialize a transfer as a Settlement transaction.
"""

import logging
from decimal import Decimal
from typing import Optional

from balances import calculate_balances
from transactions import Settlement, build_settlement
from utils import parse_amount, round_decimal


logger = logging.getLogger(__name__)

# Balances within one cent of zero take part in no transfer
EPSILON = Decimal("0.01")

UNKNOWN_NAME = "Unknown"


class SettlementTransfer:
    """
    A recommended payment from a debtor to a creditor.

    Transfers are not persisted; one becomes a Settlement transaction only
    when the payment is confirmed (see to_settlement).

    Attributes:
        from_id (str): Member who pays.
        to_id (str): Member who receives.
        amount (float): Amount rounded to 2 decimal places, always > 0.
        from_name (str): Display name of the payer.
        to_name (str): Display name of the receiver.
    """

    def __init__(
        self,
        from_id: str,
        to_id: str,
        amount: float,
        from_name: str = UNKNOWN_NAME,
        to_name: str = UNKNOWN_NAME
    ):
        self.from_id = from_id
        self.to_id = to_id
        self.amount = amount
        self.from_name = from_name
        self.to_name = to_name

    def to_dict(self) -> dict:
        return {
            "from_id": self.from_id,
            "from_name": self.from_name,
            "to_id": self.to_id,
            "to_name": self.to_name,
            "amount": self.amount
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, SettlementTransfer):
            return NotImplemented
        return (self.from_id, self.to_id, self.amount) == (other.from_id, other.to_id, other.amount)

    def __repr__(self) -> str:
        return f"SettlementTransfer(from='{self.from_id}', to='{self.to_id}', amount={self.amount})"


def simplify_debts(
    balances: dict,
    names: Optional[dict] = None,
    epsilon: Decimal = EPSILON
) -> list[SettlementTransfer]:
    """
    Convert net balances into settlement transfers.

    Uses a greedy algorithm:
        1. Members below -epsilon are debtors, above +epsilon creditors;
           everyone in between is already settled
        2. Take the first remaining debtor and the first remaining creditor
           (balance insertion order)
        3. Transfer the smaller of the debt and the credit
        4. Drop whichever side fell below epsilon and repeat until one
           side is empty

    Every round drops at least one member, so the result has at most
    len(debtors) + len(creditors) - 1 transfers.

    Args:
        balances: member_id -> net balance (Decimal, int or float).
        names: Optional member_id -> display name lookup.
        epsilon: Settlement tolerance.

    Returns:
        list[SettlementTransfer]: Transfers in the order they were matched.

    Notes:
        - Does NOT modify the input balances
        - Balances that do not sum to zero leave a residual on one side;
          it is logged and dropped, never looped on
    """
    names = names or {}
    epsilon = Decimal(str(epsilon))

    # amounts on both sides are stored as positive magnitudes
    debtors = {}
    creditors = {}
    for member_id, balance in balances.items():
        net = parse_amount(balance)
        if net is None:
            logger.debug("Skipping unusable balance %r for member %s", balance, member_id)
            continue
        if net < -epsilon:
            debtors[member_id] = -net
        elif net > epsilon:
            creditors[member_id] = net

    transfers = []
    while debtors and creditors:
        debtor_id = next(iter(debtors))
        creditor_id = next(iter(creditors))

        amount = min(debtors[debtor_id], creditors[creditor_id])
        transfers.append(SettlementTransfer(
            from_id=debtor_id,
            to_id=creditor_id,
            amount=round_decimal(amount),
            from_name=names.get(debtor_id, UNKNOWN_NAME),
            to_name=names.get(creditor_id, UNKNOWN_NAME)
        ))

        debtors[debtor_id] -= amount
        creditors[creditor_id] -= amount

        if debtors[debtor_id] < epsilon:
            del debtors[debtor_id]
        if creditors[creditor_id] < epsilon:
            del creditors[creditor_id]

    residual = {member_id: -amount for member_id, amount in debtors.items()}
    residual.update(creditors)
    if residual:
        logger.warning(
            "Balances do not sum to zero; leaving residual unsettled: %s",
            {member_id: round_decimal(amount) for member_id, amount in residual.items()}
        )

    return transfers


def split_for_member(transfers: list[SettlementTransfer], member_id: str) -> dict:
    """
    Partition transfers for the two tabs of the settle-up view.

    Returns:
        dict: owed_to_me (transfers received by member_id) and i_owe
        (transfers paid by member_id). Transfers between other members
        appear in neither list.
    """
    return {
        "owed_to_me": [t for t in transfers if t.to_id == member_id],
        "i_owe": [t for t in transfers if t.from_id == member_id]
    }


def settle_up(
    members: list,
    transactions: list,
    current_member_id: str,
    names: Optional[dict] = None,
    epsilon: Decimal = EPSILON
) -> dict:
    """
    Run the full pipeline for one member's settle-up view.

    Args:
        members: Group members.
        transactions: Decoded Expense and Settlement records.
        current_member_id: Member viewing the screen.
        names: Optional member_id -> display name lookup.
        epsilon: Settlement tolerance.

    Returns:
        dict: transfers (every recommended transfer), owed_to_me, i_owe.
        All three are empty for a group with fewer than two members.
    """
    if len(members) < 2:
        return {"transfers": [], "owed_to_me": [], "i_owe": []}

    balances = calculate_balances(members, transactions)
    transfers = simplify_debts(balances, names=names, epsilon=epsilon)

    result = {"transfers": transfers}
    result.update(split_for_member(transfers, current_member_id))
    return result


def to_settlement(transfer: SettlementTransfer, timestamp=None) -> Settlement:
    """Materialize a confirmed transfer as a Settlement transaction."""
    from_name = transfer.from_name if transfer.from_name != UNKNOWN_NAME else None
    return build_settlement(
        paid_by=transfer.from_id,
        received_by=transfer.to_id,
        amount=transfer.amount,
        from_name=from_name,
        timestamp=timestamp
    )
