"""
Balances Module

This module folds a group's transaction log into one net balance per member.

Features:
    - Net balance per member from expenses and settlements
    - Per-member breakdown (paid, share, settled) for display
    - Order-independent: the result is a sum over the whole log
    - Unknown member ids are ignored without touching other balances

Data Model:
    Input - members: list of Member
    Input - transactions: list of Expense / Settlement

    Output - balances (dict keyed by member_id):
        - Decimal net balance
            - Positive = the group owes this member
            - Negative = this member owes the group

Functions:
    calculate_balances: Net balance per member.
    summarize_balances: Rounded per-member breakdown for display.
"""

import logging
from decimal import Decimal

from splitter import resolve_shares
from utils import round_decimal


logger = logging.getLogger(__name__)


def _fold(members: list, transactions: list) -> dict:
    """
    Accumulate every transaction into per-member Decimal counters.

    Counters per member:
        - paid: expense amounts the member fronted
        - share: resolved shares the member owes
        - settled_out: settlement amounts the member sent
        - settled_in: settlement amounts the member received
    """
    ledger = {
        m.member_id: {
            "paid": Decimal("0"),
            "share": Decimal("0"),
            "settled_out": Decimal("0"),
            "settled_in": Decimal("0")
        }
        for m in members
    }

    for txn in transactions:
        amount = txn.amount
        if amount is None or amount <= 0:
            logger.debug("Skipping %r: amount is missing or not positive", txn)
            continue

        if txn.is_settlement:
            if txn.paid_by in ledger and txn.received_by in ledger:
                ledger[txn.paid_by]["settled_out"] += amount
                ledger[txn.received_by]["settled_in"] += amount
            else:
                logger.debug("Skipping %r: references a member outside the group", txn)
            continue

        if txn.paid_by not in ledger:
            logger.debug("Skipping %r: payer is not a group member", txn)
            continue

        # credit the payer first, then debit every share, payer included
        ledger[txn.paid_by]["paid"] += amount
        for member_id, share in resolve_shares(txn).items():
            if member_id in ledger:
                ledger[member_id]["share"] += share
            else:
                logger.debug("Ignoring share of unknown member %s in %r", member_id, txn)

    return ledger


def _net(counters: dict) -> Decimal:
    return (
        counters["paid"] - counters["share"]
        + counters["settled_out"] - counters["settled_in"]
    )


def calculate_balances(members: list, transactions: list) -> dict:
    """
    Calculate the net balance of every member.

    For each expense:
        1. The payer's balance increases by the full amount
        2. Each member's balance decreases by their resolved share
        3. With no resolvable participants only step 1 applies

    For each settlement:
        1. The payer's balance increases by the amount
        2. The receiver's balance decreases by the amount

    Args:
        members: Group members; every one of them gets an entry.
        transactions: Decoded Expense and Settlement records.

    Returns:
        dict: member_id -> Decimal net balance, unrounded so the values
        sum to zero for any log whose expenses all resolve to shares.

    Notes:
        - Transactions naming a payer/receiver outside `members` are ignored
        - Transactions with a missing or non-positive amount are ignored
        - Does NOT read from or write to Firebase
    """
    ledger = _fold(members, transactions)
    return {member_id: _net(counters) for member_id, counters in ledger.items()}


def summarize_balances(members: list, transactions: list) -> dict:
    """
    Build the per-member breakdown shown next to each balance.

    Args:
        members: Group members.
        transactions: Decoded Expense and Settlement records.

    Returns:
        dict: Keyed by member_id, each containing floats rounded to 2 places:
            - total_paid: expense amounts fronted
            - total_share: shares owed
            - settled_out: settlement amounts sent
            - settled_in: settlement amounts received
            - net_balance: same value calculate_balances reports, rounded
    """
    ledger = _fold(members, transactions)
    return {
        member_id: {
            "total_paid": round_decimal(counters["paid"]),
            "total_share": round_decimal(counters["share"]),
            "settled_out": round_decimal(counters["settled_out"]),
            "settled_in": round_decimal(counters["settled_in"]),
            "net_balance": round_decimal(_net(counters))
        }
        for member_id, counters in ledger.items()
    }
