from decimal import Decimal
from typing import List, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tally.db.mongo import get_db
from tally.main import app
from tally.models.ledger import NetBalance, Participant


def _make_balances(*entries: Tuple[str, object]) -> List[NetBalance]:
    return [
        NetBalance(participant=Participant(id=str(index), name=name), net=Decimal(str(net)))
        for index, (name, net) in enumerate(entries, start=1)
    ]


@pytest.fixture
def make_balances():
    """make_balances(("Alice", 100), ("Bob", -50)): ids "1", "2", ... in order."""
    return _make_balances


@pytest.fixture
def alice():
    return Participant(id="u1", name="Alice")


@pytest.fixture
def bob():
    return Participant(id="u2", name="Bob")


@pytest.fixture
def charlie():
    return Participant(id="u3", name="Charlie")


@pytest.fixture
def mock_db():
    """Motor database stand-in: every collection method is an AsyncMock."""
    db = MagicMock()
    collections = {}
    for name in ("groups", "expenses", "settlements"):
        collection = MagicMock()
        collection.insert_one = AsyncMock()
        collection.find_one = AsyncMock(return_value=None)
        collection.update_one = AsyncMock()
        collections[name] = collection
        setattr(db, name, collection)
    db.__getitem__.side_effect = collections.__getitem__
    return db


@pytest.fixture
def client(mock_db):
    """FastAPI test client backed by the mock database (no lifespan, no Mongo)."""
    app.dependency_overrides[get_db] = lambda: mock_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
