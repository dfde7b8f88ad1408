from decimal import Decimal

import pytest

from config.settings import _decimal_env, settings


def test_settlement_epsilon_is_a_decimal():
    assert isinstance(settings.SETTLEMENT_EPSILON, Decimal)


def test_decimal_env_reads_value(monkeypatch):
    monkeypatch.setenv("SETTLEMENT_EPSILON", " 0.05 ")
    assert _decimal_env("SETTLEMENT_EPSILON", "0.01") == Decimal("0.05")


def test_decimal_env_falls_back_to_default(monkeypatch):
    monkeypatch.delenv("SETTLEMENT_EPSILON", raising=False)
    assert _decimal_env("SETTLEMENT_EPSILON", "0.01") == Decimal("0.01")


@pytest.mark.parametrize("raw", ["abc", "", "nan", "-0.5"])
def test_decimal_env_rejects_bad_values(monkeypatch, raw):
    monkeypatch.setenv("SETTLEMENT_EPSILON", raw)
    with pytest.raises(ValueError, match="SETTLEMENT_EPSILON"):
        _decimal_env("SETTLEMENT_EPSILON", "0.01")
