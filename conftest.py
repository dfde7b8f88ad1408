import pytest

from members import Member
from transactions import transaction_from_dict


@pytest.fixture
def abc_members():
    return [
        Member("A", "Alice", "alice@example.com"),
        Member("B", "Bob", "bob@example.com"),
        Member("C", "Charlie", "charlie@example.com"),
    ]


@pytest.fixture
def make_txn():
    """Build a decoded transaction from raw document fields."""
    def _make(**fields):
        return transaction_from_dict(fields)
    return _make
