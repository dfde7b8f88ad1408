"""
Firebase Store Module

This module reads a group's members and transaction log from Firebase
Firestore and writes new transactions back.

Features:
    - Load and decode the member list of a group
    - Load and decode every transaction of a group
    - Add expenses and confirmed settlements
    - Retract (delete) a transaction

Firestore Structure:
    groups/{group_id}
        - members: list of {id, name, email}

    groups/{group_id}/expenses/{transaction_id}
        - type: "expense" or "settle"
        - title, amount, paidBy, receivedBy, timestamp
        - splitType, splits / splitBetween / splitWith (expenses only)

Functions:
    get_members: Load the members of a group.
    get_transactions: Load every transaction of a group.
    add_transaction: Store a new Expense or Settlement.
    delete_transaction: Remove a transaction.
    record_settlement: Store a confirmed SettlementTransfer as a Settlement.
"""

import logging

from config.firebase_config import get_db
from members import Member, decode_members
from settlement import SettlementTransfer, to_settlement
from transactions import transaction_from_dict


logger = logging.getLogger(__name__)


def _validate_group_id(group_id: str) -> None:
    """
    Validate that group_id is a non-empty string.

    Raises:
        ValueError: If group_id is invalid.
    """
    if not isinstance(group_id, str) or not group_id.strip():
        raise ValueError("group_id must be a non-empty string")


def _require_db():
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")
    return db


def _transactions_ref(db, group_id: str):
    return db.collection("groups").document(group_id).collection("expenses")


def get_members(group_id: str) -> list[Member]:
    """
    Load the members of a group.

    Args:
        group_id: The ID of the group.

    Returns:
        list[Member]: Decoded members, in stored order.

    Raises:
        ValueError: If group_id is invalid or the group does not exist.
        RuntimeError: If Firestore is not available.
    """
    _validate_group_id(group_id)
    db = _require_db()

    doc = db.collection("groups").document(group_id).get()
    if not doc.exists:
        raise ValueError(f"Group {group_id} not found")

    data = doc.to_dict() or {}
    return decode_members(data.get("members"))


def get_transactions(group_id: str) -> list:
    """
    Load every transaction of a group.

    Documents are decoded leniently; a malformed document becomes a
    transaction that the balance computation ignores, not an error.

    Raises:
        ValueError: If group_id is invalid.
        RuntimeError: If Firestore is not available.
    """
    _validate_group_id(group_id)
    db = _require_db()

    docs = _transactions_ref(db, group_id).stream()
    transactions = []
    for doc in docs:
        data = doc.to_dict()
        if not data:
            logger.debug("Skipping empty transaction document %s", doc.id)
            continue
        transactions.append(transaction_from_dict(data, transaction_id=doc.id))
    return transactions


def add_transaction(group_id: str, transaction) -> str:
    """
    Store a new Expense or Settlement.

    Args:
        group_id: The ID of the group.
        transaction: Record built by build_expense / build_settlement.

    Returns:
        str: The generated document id (also set on the transaction).

    Raises:
        ValueError: If group_id is invalid.
        RuntimeError: If Firestore is not available.
    """
    _validate_group_id(group_id)
    db = _require_db()

    doc_ref = _transactions_ref(db, group_id).document()
    doc_ref.set(transaction.to_dict())
    transaction.transaction_id = doc_ref.id

    logger.info("Stored %s %s in group %s", transaction.kind, doc_ref.id, group_id)
    return doc_ref.id


def delete_transaction(group_id: str, transaction_id: str) -> None:
    """
    Remove a transaction from a group's log.

    Raises:
        ValueError: If an id is invalid or the transaction does not exist.
        RuntimeError: If Firestore is not available.
    """
    _validate_group_id(group_id)
    if not isinstance(transaction_id, str) or not transaction_id.strip():
        raise ValueError("transaction_id must be a non-empty string")
    db = _require_db()

    doc_ref = _transactions_ref(db, group_id).document(transaction_id)
    if not doc_ref.get().exists:
        raise ValueError(f"Transaction {transaction_id} not found in group {group_id}")

    doc_ref.delete()
    logger.info("Deleted transaction %s from group %s", transaction_id, group_id)


def get_transaction(group_id: str, transaction_id: str):
    """
    Load one transaction.

    Raises:
        ValueError: If an id is invalid or the transaction does not exist.
        RuntimeError: If Firestore is not available.
    """
    _validate_group_id(group_id)
    db = _require_db()

    doc = _transactions_ref(db, group_id).document(transaction_id).get()
    if not doc.exists:
        raise ValueError(f"Transaction {transaction_id} not found in group {group_id}")
    return transaction_from_dict(doc.to_dict() or {}, transaction_id=doc.id)


def record_settlement(group_id: str, transfer: SettlementTransfer, timestamp=None) -> str:
    """Store a confirmed transfer as a Settlement transaction and return its id."""
    return add_transaction(group_id, to_settlement(transfer, timestamp=timestamp))
