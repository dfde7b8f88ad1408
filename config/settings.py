import os
from decimal import Decimal, InvalidOperation
from dotenv import load_dotenv

load_dotenv()


def _decimal_env(name: str, default: str) -> Decimal:
    raw = os.environ.get(name, default)
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise ValueError(f"{name} must be a decimal number, got: {raw}")
    if not value.is_finite() or value < 0:
        raise ValueError(f"{name} must be a finite, non-negative number, got: {raw}")
    return value


class Settings:
    # Display
    CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "₹")

    # Balances within this many currency units of zero are treated as settled
    SETTLEMENT_EPSILON = _decimal_env("SETTLEMENT_EPSILON", "0.01")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Firebase credentials: inline JSON (production) or a key file (local)
    FIREBASE_SERVICE_ACCOUNT = os.environ.get("FIREBASE_SERVICE_ACCOUNT")
    FIREBASE_CREDENTIALS_PATH = os.environ.get(
        "FIREBASE_CREDENTIALS_PATH", "config/serviceAccountKey.json"
    )


settings = Settings()
