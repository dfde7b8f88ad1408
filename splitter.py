"""
Splitter Module

This module turns the "who participated and how much" data of a single
expense into a canonical per-member share map.

Features:
    - Decoding of the three legacy share encodings into one ShareSpec
    - Proportional rescaling of explicit weights to the expense amount
    - Equal splitting among listed or flagged members
    - Per-expense breakdown rows for the expense detail view

Data Model:
    Input - expense document fields (any subset may be present):
        - splits: dict of member_id -> number | numeric string | bool
        - splitBetween: list of member_ids
        - splitWith: list of dicts with userId (or memberId), amount?, included?
        - participantShares: any one of the three shapes above

    Output - shares (dict keyed by member_id):
        - Decimal share owed by that member, all shares >= 0 and summing
          to the expense amount whenever any participant data resolved

Functions:
    decode_share_spec: Decode raw document fields into a ShareSpec.
    resolve_shares: Resolve an expense into per-member shares.
    explain_expense: Build the payer and participant rows for one expense.
"""

import logging
from decimal import Decimal
from typing import Optional

from utils import parse_amount, parse_included, round_decimal


logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")


class ShareEntry:
    """
    One record of an annotated share list.

    Attributes:
        member_id (str): Member the entry refers to.
        amount (Decimal | None): Explicit weight, if the entry carried one.
        included (bool): Inclusion flag used when no entry carries a weight.
    """

    def __init__(self, member_id: str, amount: Optional[Decimal] = None, included: bool = True):
        self.member_id = member_id
        self.amount = amount
        self.included = included

    def to_dict(self) -> dict:
        data = {"userId": self.member_id, "included": self.included}
        if self.amount is not None:
            data["amount"] = float(self.amount)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Optional["ShareEntry"]:
        """Create a ShareEntry from a raw dict, or None if it names no member."""
        member_id = data.get("userId", data.get("memberId"))
        if not isinstance(member_id, str) or not member_id:
            return None

        amount = parse_amount(data.get("amount"))
        if amount is not None and amount < 0:
            # still a numeric amount, so the entry stays on the weights path
            amount = ZERO

        return cls(
            member_id=member_id,
            amount=amount,
            included=parse_included(data.get("included"))
        )

    def __repr__(self) -> str:
        return f"ShareEntry(member='{self.member_id}', amount={self.amount}, included={self.included})"


class ShareSpec:
    """
    Closed representation of an expense's participant data.

    Each of the three legacy encodings is held in its own slot; a slot is
    None when the document did not carry that encoding at all. The slots
    are consulted in a fixed precedence by resolve_shares.

    Attributes:
        explicit (dict[str, Decimal | bool] | None): Explicit map. Values
            are non-negative Decimal weights or boolean inclusion flags.
        participants (list[str] | None): Plain participant list, unique ids
            in first-seen order.
        annotated (list[ShareEntry] | None): Annotated entry list.
    """

    def __init__(
        self,
        explicit: Optional[dict] = None,
        participants: Optional[list[str]] = None,
        annotated: Optional[list[ShareEntry]] = None
    ):
        self.explicit = explicit
        self.participants = participants
        self.annotated = annotated

    @property
    def is_empty(self) -> bool:
        """True when the expense carried no participant data at all."""
        return not self.explicit and not self.participants and not self.annotated

    def to_dict(self) -> dict:
        """Convert back to the document field layout used by the store."""
        data = {}
        if self.explicit is not None:
            data["splits"] = {
                member_id: value if isinstance(value, bool) else float(value)
                for member_id, value in self.explicit.items()
            }
        if self.participants is not None:
            data["splitBetween"] = list(self.participants)
        if self.annotated is not None:
            data["splitWith"] = [entry.to_dict() for entry in self.annotated]
        return data

    def __repr__(self) -> str:
        return (
            f"ShareSpec(explicit={self.explicit}, participants={self.participants}, "
            f"annotated={self.annotated})"
        )


def _decode_explicit(raw: dict) -> dict:
    """
    Coerce every entry of an explicit map.

    Booleans are kept as flags, numbers and numeric strings become Decimal
    weights. Negative, unparsable and non-string-keyed entries are dropped.
    """
    explicit = {}
    for member_id, value in raw.items():
        if not isinstance(member_id, str) or not member_id:
            continue
        if isinstance(value, bool):
            explicit[member_id] = value
            continue
        weight = parse_amount(value)
        if weight is None or weight < 0:
            logger.debug("Dropping unusable split value %r for member %s", value, member_id)
            continue
        explicit[member_id] = weight
    return explicit


def _decode_participants(raw: list) -> list[str]:
    """Keep string ids only, de-duplicated in first-seen order."""
    seen = []
    for member_id in raw:
        if isinstance(member_id, str) and member_id and member_id not in seen:
            seen.append(member_id)
    return seen


def _decode_annotated(raw: list) -> list[ShareEntry]:
    entries = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        entry = ShareEntry.from_dict(item)
        if entry is not None:
            entries.append(entry)
    return entries


def decode_share_spec(data: dict) -> ShareSpec:
    """
    Decode the participant fields of an expense document into a ShareSpec.

    The legacy field names (splits, splitBetween, splitWith) each fill
    their own slot. A `participantShares` field is dispatched on its shape:
    a dict fills the explicit slot, a list of dicts the annotated slot and
    any other list the participant slot. Legacy fields win when both are
    present.

    Args:
        data: Raw transaction document.

    Returns:
        ShareSpec: Decoded participant data; every slot is None when the
        document carries nothing recognizable.
    """
    explicit = None
    participants = None
    annotated = None

    generic = data.get("participantShares")
    if isinstance(generic, dict):
        explicit = _decode_explicit(generic)
    elif isinstance(generic, list):
        if any(isinstance(item, dict) for item in generic):
            annotated = _decode_annotated(generic)
        else:
            participants = _decode_participants(generic)

    splits = data.get("splits")
    if isinstance(splits, dict):
        explicit = _decode_explicit(splits)

    split_between = data.get("splitBetween")
    if isinstance(split_between, list):
        participants = _decode_participants(split_between)

    split_with = data.get("splitWith")
    if isinstance(split_with, list):
        annotated = _decode_annotated(split_with)

    return ShareSpec(explicit=explicit, participants=participants, annotated=annotated)


def _split_equally(amount: Decimal, member_ids: list[str]) -> dict:
    # callers guarantee member_ids is non-empty
    share = amount / Decimal(len(member_ids))
    return {member_id: share for member_id in member_ids}


def _rescale(amount: Decimal, weights: dict) -> dict:
    total = sum(weights.values(), ZERO)
    return {member_id: weight * amount / total for member_id, weight in weights.items()}


def _resolve_explicit(amount: Decimal, explicit: dict) -> Optional[dict]:
    """Apply the explicit-map rules; None means fall through to the next encoding."""
    weights = {}
    for member_id, value in explicit.items():
        if value is True:
            # a True flag weighs 1, so a map of flags rescales to an equal split
            weights[member_id] = ONE
        elif value is False:
            continue
        else:
            weights[member_id] = value

    if weights and sum(weights.values(), ZERO) > 0:
        return _rescale(amount, weights)

    return None


def _resolve_annotated(amount: Decimal, entries: list[ShareEntry]) -> Optional[dict]:
    weights = {}
    for entry in entries:
        if entry.amount is not None:
            weights[entry.member_id] = weights.get(entry.member_id, ZERO) + entry.amount

    if weights:
        if sum(weights.values(), ZERO) > 0:
            return _rescale(amount, weights)
        return {}

    included = []
    for entry in entries:
        if entry.included and entry.member_id not in included:
            included.append(entry.member_id)
    if included:
        return _split_equally(amount, included)

    return None


def resolve_shares(expense) -> dict:
    """
    Resolve an expense into the share each member owes.

    Precedence, first applicable rule wins:
        1. Explicit map: weights (True counts as 1) are rescaled so they
           sum to the amount, so a map of True flags splits equally among
           the flagged members; with no positive weight, fall through.
        2. Participant list: equal split among the listed members.
        3. Annotated list: explicit entry amounts are rescaled like rule 1,
           else equal split among included entries.
        4. Nothing usable: empty mapping (the payer financed it alone).

    Args:
        expense: Object with `amount` (Decimal or None) and `shares`
            (ShareSpec) attributes.

    Returns:
        dict: member_id -> Decimal share. Empty when the amount is missing
        or not positive, or no participant data resolved.
    """
    amount = expense.amount
    if amount is None or amount <= 0:
        return {}

    spec = expense.shares
    if spec is None:
        return {}

    if spec.explicit:
        shares = _resolve_explicit(amount, spec.explicit)
        if shares is not None:
            return shares

    if spec.participants:
        return _split_equally(amount, spec.participants)

    if spec.annotated:
        shares = _resolve_annotated(amount, spec.annotated)
        if shares is not None:
            return shares

    return {}


def explain_expense(transaction, names: Optional[dict] = None) -> list[dict]:
    """
    Build the rows the expense detail view shows for one transaction.

    The first row is always the payer with the full amount. For an expense
    one row per resolved share follows; for a settlement the receiver
    follows with the transferred amount.

    Args:
        transaction: Decoded Expense or Settlement.
        names: Optional member_id -> display name lookup.

    Returns:
        list[dict]: Rows with member_id, name, amount (rounded float) and
        is_payer. Empty when the transaction amount is unusable.
    """
    names = names or {}
    amount = transaction.amount
    if amount is None or amount <= 0:
        return []

    rows = [{
        "member_id": transaction.paid_by,
        "name": names.get(transaction.paid_by, "Unknown"),
        "amount": round_decimal(amount),
        "is_payer": True
    }]

    if transaction.is_settlement:
        counterparts = {transaction.received_by: amount}
    else:
        counterparts = resolve_shares(transaction)

    for member_id, share in counterparts.items():
        rows.append({
            "member_id": member_id,
            "name": names.get(member_id, "Unknown"),
            "amount": round_decimal(share),
            "is_payer": False
        })

    return rows
