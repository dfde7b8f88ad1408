"""
Transactions Module

This module defines the two kinds of records in a group's transaction log
and the rules for creating new ones.

Features:
    - Expense and Settlement records with store round-tripping
    - Lenient decoding of loosely-typed store documents
    - Equal and unequal expense entry with validation
    - Settlement records for confirmed payments
    - Display ordering by timestamp

Data Model:
    Transaction stored at: groups/{group_id}/expenses/{transaction_id}
    Fields:
        - type: "expense" (default) or "settle"
        - title: string
        - amount: float (must be > 0 to have any effect)
        - paidBy: member_id
        - receivedBy: member_id (settlements only)
        - splitType: "equal" or "unequal" (expenses only)
        - splits / splitBetween / splitWith: participant data (expenses only)
        - timestamp: epoch milliseconds or Firestore timestamp

Functions:
    transaction_from_dict: Decode a store document into an Expense or Settlement.
    build_expense: Validate user input and create a new Expense.
    build_settlement: Validate user input and create a new Settlement.
    sort_for_display: Order transactions newest first.
"""

import time
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from splitter import ShareSpec, decode_share_spec
from utils import parse_amount, round_decimal, validate_amount


EXPENSE = "expense"
SETTLE = "settle"

VALID_SPLIT_TYPES = {"equal", "unequal"}


def _now_millis() -> int:
    return int(time.time() * 1000)


class Expense:
    """
    Money advanced by one member on behalf of some subset of the group.

    Attributes:
        transaction_id (str | None): Store document id.
        amount (Decimal | None): Parsed amount, None when unusable.
        paid_by (str | None): Member who fronted the money.
        shares (ShareSpec): Decoded participant data.
        title (str): Display title.
        timestamp: Creation time, used for display ordering only.
        split_type (str | None): How the entry form split the amount.
    """

    kind = EXPENSE
    is_settlement = False

    def __init__(
        self,
        amount: Optional[Decimal],
        paid_by: Optional[str],
        shares: Optional[ShareSpec] = None,
        title: str = "",
        timestamp=None,
        split_type: Optional[str] = None,
        transaction_id: Optional[str] = None
    ):
        self.transaction_id = transaction_id
        self.amount = amount
        self.paid_by = paid_by
        self.shares = shares if shares is not None else ShareSpec()
        self.title = title
        self.timestamp = timestamp
        self.split_type = split_type

    def to_dict(self) -> dict:
        """Convert expense to dictionary for Firestore storage."""
        data = {
            "type": EXPENSE,
            "title": self.title,
            "amount": float(self.amount) if self.amount is not None else 0.0,
            "paidBy": self.paid_by,
            "timestamp": self.timestamp
        }
        if self.split_type:
            data["splitType"] = self.split_type
        data.update(self.shares.to_dict())
        return data

    @classmethod
    def from_dict(cls, data: dict, transaction_id: Optional[str] = None) -> "Expense":
        """Create an Expense instance from a dictionary."""
        return cls(
            transaction_id=transaction_id,
            amount=parse_amount(data.get("amount")),
            paid_by=_member_ref(data.get("paidBy")),
            shares=decode_share_spec(data),
            title=data.get("title") or "",
            timestamp=data.get("timestamp"),
            split_type=data.get("splitType")
        )

    def __repr__(self) -> str:
        return f"Expense(id='{self.transaction_id}', paid_by='{self.paid_by}', amount={self.amount})"


class Settlement:
    """
    A real transfer between two members that has already happened.

    Attributes:
        transaction_id (str | None): Store document id.
        amount (Decimal | None): Parsed amount, None when unusable.
        paid_by (str | None): Member who sent the money.
        received_by (str | None): Member who received it.
        title (str): Display title.
        timestamp: Creation time, used for display ordering only.
    """

    kind = SETTLE
    is_settlement = True

    def __init__(
        self,
        amount: Optional[Decimal],
        paid_by: Optional[str],
        received_by: Optional[str],
        title: str = "",
        timestamp=None,
        transaction_id: Optional[str] = None
    ):
        self.transaction_id = transaction_id
        self.amount = amount
        self.paid_by = paid_by
        self.received_by = received_by
        self.title = title
        self.timestamp = timestamp

    def to_dict(self) -> dict:
        """Convert settlement to dictionary for Firestore storage."""
        return {
            "type": SETTLE,
            "title": self.title,
            "amount": float(self.amount) if self.amount is not None else 0.0,
            "paidBy": self.paid_by,
            "receivedBy": self.received_by,
            "timestamp": self.timestamp
        }

    @classmethod
    def from_dict(cls, data: dict, transaction_id: Optional[str] = None) -> "Settlement":
        """Create a Settlement instance from a dictionary."""
        return cls(
            transaction_id=transaction_id,
            amount=parse_amount(data.get("amount")),
            paid_by=_member_ref(data.get("paidBy")),
            received_by=_member_ref(data.get("receivedBy")),
            title=data.get("title") or "",
            timestamp=data.get("timestamp")
        )

    def __repr__(self) -> str:
        return (
            f"Settlement(id='{self.transaction_id}', paid_by='{self.paid_by}', "
            f"received_by='{self.received_by}', amount={self.amount})"
        )


Transaction = Union[Expense, Settlement]


def _member_ref(value) -> Optional[str]:
    # the store writes "" for a missing payer/receiver
    if isinstance(value, str) and value:
        return value
    return None


def transaction_from_dict(data: dict, transaction_id: Optional[str] = None) -> Transaction:
    """
    Decode a store document into an Expense or Settlement.

    The discriminator is read from `type`, with `kind` as an alias. Only
    the value "settle" makes a Settlement; anything else, including a
    missing field, is an Expense.

    Args:
        data: Raw document contents.
        transaction_id: Document id, if known.

    Returns:
        Expense | Settlement: The decoded record. Never raises on bad
        field values; unusable amounts decode to None.
    """
    kind = data.get("type", data.get("kind"))
    if kind == SETTLE:
        return Settlement.from_dict(data, transaction_id=transaction_id)
    return Expense.from_dict(data, transaction_id=transaction_id)


def _validate_non_empty_string(value: str, field_name: str) -> bool:
    """
    Validate that a string is non-empty.

    Raises:
        ValueError: If string is empty or not a string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return True


def _validate_positive_amount(amount, field_name: str = "amount") -> Decimal:
    if not validate_amount(amount):
        raise ValueError(f"{field_name} must be a positive number, got: {amount}")
    return parse_amount(amount)


def _to_cents(value: Decimal) -> Decimal:
    return Decimal(str(round_decimal(value)))


def build_expense(
    title: str,
    amount,
    paid_by: str,
    participants: list[str],
    split_type: str = "equal",
    custom_amounts: Optional[dict] = None,
    timestamp=None
) -> Expense:
    """
    Create a new Expense from entry-form input.

    Args:
        title: Expense title (must be non-blank).
        amount: Total amount (must be > 0).
        paid_by: Member id of the payer.
        participants: Member ids sharing the expense (at least one).
        split_type: "equal" or "unequal".
        custom_amounts: member_id -> amount, required for "unequal".
        timestamp: Creation time, defaults to now in epoch milliseconds.

    Returns:
        Expense: The new expense, not yet persisted.

    Raises:
        ValueError: If input validation fails.

    Notes:
        - Equal shares and custom amounts are rounded to 2 decimal places
        - Unequal amounts must add up to the total at 2 decimal places
        - The payer does NOT have to be a participant
    """
    _validate_non_empty_string(title, "title")
    _validate_non_empty_string(paid_by, "paid_by")
    total = _validate_positive_amount(amount)

    if not isinstance(participants, list) or len(participants) == 0:
        raise ValueError("Select at least one member")
    members = []
    for member_id in participants:
        _validate_non_empty_string(member_id, "participant id")
        if member_id not in members:
            members.append(member_id)

    if split_type not in VALID_SPLIT_TYPES:
        raise ValueError(f"split_type must be one of {sorted(VALID_SPLIT_TYPES)}, got: {split_type}")

    if split_type == "equal":
        per_person = _to_cents(total / Decimal(len(members)))
        splits = {member_id: per_person for member_id in members}
    else:
        custom_amounts = custom_amounts or {}
        splits = {}
        entered = Decimal("0")
        for member_id in members:
            share = parse_amount(custom_amounts.get(member_id))
            if share is None or share < 0:
                raise ValueError(f"Enter a valid amount for member {member_id}")
            entered += share
            splits[member_id] = _to_cents(share)
        if _to_cents(entered) != _to_cents(total):
            raise ValueError(
                f"Total unequal split must equal {round_decimal(total):.2f}, "
                f"got {round_decimal(entered):.2f}"
            )

    return Expense(
        amount=_to_cents(total),
        paid_by=paid_by,
        shares=ShareSpec(explicit=splits),
        title=title.strip(),
        timestamp=timestamp if timestamp is not None else _now_millis(),
        split_type=split_type
    )


def build_settlement(
    paid_by: str,
    received_by: str,
    amount,
    from_name: Optional[str] = None,
    timestamp=None
) -> Settlement:
    """
    Create a Settlement for a payment the receiver has confirmed.

    Raises:
        ValueError: If either member id is blank, they are the same member,
            or the amount is not positive.
    """
    _validate_non_empty_string(paid_by, "paid_by")
    _validate_non_empty_string(received_by, "received_by")
    if paid_by == received_by:
        raise ValueError("A member cannot settle with themselves")
    total = _validate_positive_amount(amount)

    return Settlement(
        amount=total,
        paid_by=paid_by,
        received_by=received_by,
        title=f"Settlement from {from_name or paid_by}",
        timestamp=timestamp if timestamp is not None else _now_millis()
    )


def _timestamp_key(value) -> float:
    """Normalize the timestamp shapes found in the store to epoch milliseconds."""
    if isinstance(value, datetime):
        return value.timestamp() * 1000
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return 0.0


def sort_for_display(transactions: list) -> list:
    """Return transactions newest first; records without a timestamp go last."""
    return sorted(transactions, key=lambda t: _timestamp_key(t.timestamp), reverse=True)
