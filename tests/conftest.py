"""Shared fixtures for the test suite."""

import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from fincompliance.config import RiskConfig
from fincompliance.main import app
from fincompliance.models import Transaction, TransactionRequest
from fincompliance.screening.engine import ScreeningEngine
from fincompliance.storage.history import AccountHistoryStore
from fincompliance.storage.memory import ResultStore

FIXED_NOW = datetime(2026, 2, 22, 12, 0, tzinfo=timezone.utc)

_ids = itertools.count(1)


@pytest.fixture
def config():
    return RiskConfig()


@pytest.fixture
def history():
    return AccountHistoryStore()


@pytest.fixture
def store():
    return ResultStore()


@pytest.fixture
def engine(config, history, store):
    return ScreeningEngine(
        config=config,
        history=history,
        store=store,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def ts(seconds: float = 0) -> datetime:
    """A timestamp `seconds` after 2026-02-22T10:00:00Z."""
    return datetime(2026, 2, 22, 10, 0, tzinfo=timezone.utc) + timedelta(seconds=seconds)


def make_request(
    amount=50000.0,
    currency="INR",
    from_account="ACC-8892-IN (Amit Sharma)",
    to_account="ACC-1123-IN (Local Vendors)",
    country="India",
    tx_type="NEFT",
    location="Delhi Branch",
    timestamp="2026-02-22T10:00:00Z",
) -> TransactionRequest:
    return TransactionRequest(
        amount=amount,
        currency=currency,
        from_account=from_account,
        to_account=to_account,
        receiver_country=country,
        type=tx_type,
        location=location,
        timestamp=(
            datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
            if isinstance(timestamp, str)
            else timestamp
        ),
    )


def make_transaction(tx_id=None, **overrides) -> Transaction:
    request = make_request(**overrides)
    return Transaction(id=tx_id or f"TX-T{next(_ids)}", **request.model_dump())
