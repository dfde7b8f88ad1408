from unittest.mock import MagicMock

import pytest

import firebase_store
from settlement import SettlementTransfer
from transactions import Expense, Settlement, build_expense


def _doc(doc_id, data, exists=True):
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = exists
    doc.to_dict.return_value = data
    return doc


@pytest.fixture
def db(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr(firebase_store, "get_db", lambda: fake)
    return fake


def _group_ref(db):
    return db.collection.return_value.document.return_value


def _txn_collection(db):
    return _group_ref(db).collection.return_value


def test_get_members_decodes_group_document(db):
    _group_ref(db).get.return_value = _doc("g1", {"members": [{"id": "A", "name": "Alice"}, {"id": "B"}]})

    members = firebase_store.get_members("g1")

    assert [m.member_id for m in members] == ["A", "B"]
    db.collection.assert_called_with("groups")
    db.collection.return_value.document.assert_called_with("g1")


def test_get_members_of_missing_group(db):
    _group_ref(db).get.return_value = _doc("g1", None, exists=False)
    with pytest.raises(ValueError, match="not found"):
        firebase_store.get_members("g1")


def test_get_transactions_decodes_each_document(db):
    _txn_collection(db).stream.return_value = [
        _doc("T1", {"amount": 90, "paidBy": "A", "splitBetween": ["A", "B"]}),
        _doc("T2", {"type": "settle", "amount": 45, "paidBy": "B", "receivedBy": "A"}),
        _doc("T3", None),
    ]

    transactions = firebase_store.get_transactions("g1")

    assert [type(t) for t in transactions] == [Expense, Settlement]
    assert [t.transaction_id for t in transactions] == ["T1", "T2"]
    _group_ref(db).collection.assert_called_with("expenses")


def test_add_transaction_writes_document_and_returns_id(db):
    ref = _txn_collection(db).document.return_value
    ref.id = "NEW1"
    expense = build_expense("Lunch", 30, "A", ["A", "B"], timestamp=1)

    assert firebase_store.add_transaction("g1", expense) == "NEW1"
    ref.set.assert_called_once_with(expense.to_dict())
    assert expense.transaction_id == "NEW1"


def test_record_settlement_stores_settle_transaction(db):
    ref = _txn_collection(db).document.return_value
    ref.id = "S1"

    firebase_store.record_settlement("g1", SettlementTransfer("B", "A", 30.0, from_name="Bob"), timestamp=7)

    ref.set.assert_called_once_with({
        "type": "settle",
        "title": "Settlement from Bob",
        "amount": 30.0,
        "paidBy": "B",
        "receivedBy": "A",
        "timestamp": 7,
    })


def test_delete_transaction(db):
    ref = _txn_collection(db).document.return_value
    ref.get.return_value = _doc("T1", {"amount": 1})

    firebase_store.delete_transaction("g1", "T1")

    _txn_collection(db).document.assert_called_with("T1")
    ref.delete.assert_called_once_with()


def test_delete_missing_transaction(db):
    ref = _txn_collection(db).document.return_value
    ref.get.return_value = _doc("T1", None, exists=False)

    with pytest.raises(ValueError, match="not found"):
        firebase_store.delete_transaction("g1", "T1")
    ref.delete.assert_not_called()


@pytest.mark.parametrize("group_id", ["", "   ", None])
def test_group_id_is_validated(db, group_id):
    with pytest.raises(ValueError, match="group_id"):
        firebase_store.get_transactions(group_id)


def test_missing_client_raises_runtime_error(monkeypatch):
    monkeypatch.setattr(firebase_store, "get_db", lambda: None)
    with pytest.raises(RuntimeError, match="Firestore is not available"):
        firebase_store.get_members("g1")
