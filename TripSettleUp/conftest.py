import pytest

from config.settings import reset_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for name in ("SETTLE_STRATEGY", "SETTLE_EPSILON", "CURRENCY_SYMBOL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def friends():
    return [
        {"id": "A", "name": "Lakshay"},
        {"id": "B", "name": "Siddhu"},
        {"id": "C", "name": "Shubham"},
    ]


@pytest.fixture
def trip_expenses():
    return [
        {
            "id": "E1",
            "amount": 90,
            "paidBy": "A",
            "category": "Food",
            "date": "2025-03-01",
            "shares": [
                {"participantId": "A", "amount": 30},
                {"participantId": "B", "amount": 30},
                {"participantId": "C", "amount": 30},
            ],
        },
        {
            "id": "E2",
            "amount": 60,
            "paidBy": "B",
            "category": "Transport",
            "date": "2025-03-03",
            "shares": [
                {"participantId": "A", "amount": 20},
                {"participantId": "B", "amount": 20},
                {"participantId": "C", "amount": 20},
            ],
        },
    ]
