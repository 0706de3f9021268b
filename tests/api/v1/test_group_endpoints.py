import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId

from tally.models.expense import Expense, ExpenseSplit
from tally.models.group import Group, Member
from tally.models.settlement import Settlement
from tally.repositories.expense_repo import ExpenseRepository
from tally.repositories.group_repo import GroupRepository
from tally.repositories.settlement_repo import SettlementRepository


@pytest.fixture
def group():
    return Group(
        name="Weekend Trip",
        members=[
            Member(user_id="a1", name="Alice"),
            Member(user_id="b2", name="Bob"),
            Member(user_id="c3", name="Charlie"),
        ],
    )


@pytest.fixture
def stored_group(group):
    with patch.object(GroupRepository, "get_group", new_callable=AsyncMock, return_value=group):
        yield group


def _dinner(group):
    # Alice paid 90, split three ways
    return Expense(
        group_id=group.id,
        title="Dinner",
        amount_cents=9000,
        paid_by_id="a1",
        splits=[
            ExpenseSplit(user_id="a1", amount_cents=3000),
            ExpenseSplit(user_id="b2", amount_cents=3000),
            ExpenseSplit(user_id="c3", amount_cents=3000),
        ],
    )


def _bob_paid_alice(group):
    return Settlement(group_id=group.id, from_user_id="b2", to_user_id="a1", amount_cents=3000)


@pytest.fixture
def stored_ledger(stored_group):
    with patch.object(
        ExpenseRepository, "list_expenses", new_callable=AsyncMock, return_value=[_dinner(stored_group)]
    ), patch.object(
        SettlementRepository, "list_settlements", new_callable=AsyncMock,
        return_value=[_bob_paid_alice(stored_group)]
    ):
        yield stored_group


# ===== GROUPS =====

def test_create_group(client, mock_db):
    inserted_id = ObjectId()
    mock_db.groups.insert_one.return_value = MagicMock(inserted_id=inserted_id)

    response = client.post("/api/v1/groups/", json={"name": "Flat 4B"})

    assert response.status_code == 201
    data = response.json()
    assert data["id"] == str(inserted_id)
    assert data["name"] == "Flat 4B"
    assert data["members"] == []
    assert data["currency"] == "USD"


def test_create_group_requires_name(client):
    response = client.post("/api/v1/groups/", json={"name": ""})

    assert response.status_code == 422


def test_get_missing_group(client):
    response = client.get(f"/api/v1/groups/{ObjectId()}")

    assert response.status_code == 404
    assert response.json()["detail"] == "Group not found"


def test_get_group(client, stored_group):
    response = client.get(f"/api/v1/groups/{stored_group.id}")

    assert response.status_code == 200
    assert [m["name"] for m in response.json()["members"]] == ["Alice", "Bob", "Charlie"]


def test_add_member(client, mock_db):
    mock_db.groups.update_one.return_value = MagicMock(matched_count=1)

    response = client.post(f"/api/v1/groups/{ObjectId()}/members", json={"name": "Dana"})

    assert response.status_code == 201
    assert response.json()["name"] == "Dana"
    assert response.json()["user_id"]


def test_add_member_unknown_group(client, mock_db):
    mock_db.groups.update_one.return_value = MagicMock(matched_count=0)

    response = client.post(f"/api/v1/groups/{ObjectId()}/members", json={"name": "Dana"})

    assert response.status_code == 404


# ===== EXPENSES =====

def test_create_equal_expense(client, mock_db, stored_group):
    mock_db.expenses.insert_one.return_value = MagicMock(inserted_id=ObjectId())

    response = client.post(
        f"/api/v1/groups/{stored_group.id}/expenses",
        json={
            "title": "Groceries",
            "amount": "100.00",
            "paid_by_id": "a1",
            "split_type": "equal",
            "splits": [{"user_id": "a1"}, {"user_id": "b2"}, {"user_id": "c3"}],
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["amount"] == "100.00"
    assert [s["amount"] for s in data["splits"]] == ["33.34", "33.33", "33.33"]
    assert data["split_type"] == "equal"
    assert mock_db.expenses.insert_one.call_args[0][0]["amount_cents"] == 10000


def test_create_percentage_expense(client, mock_db, stored_group):
    mock_db.expenses.insert_one.return_value = MagicMock(inserted_id=ObjectId())

    response = client.post(
        f"/api/v1/groups/{stored_group.id}/expenses",
        json={
            "title": "Rent",
            "amount": "1000",
            "paid_by_id": "b2",
            "split_type": "percentage",
            "splits": [{"user_id": "a1", "percentage": 50}, {"user_id": "b2", "percentage": 50}],
        },
    )

    assert response.status_code == 201
    assert [s["amount"] for s in response.json()["splits"]] == ["500.00", "500.00"]


def test_fixed_expense_split_mismatch(client, mock_db, stored_group):
    response = client.post(
        f"/api/v1/groups/{stored_group.id}/expenses",
        json={
            "title": "Taxi",
            "amount": "40",
            "paid_by_id": "a1",
            "split_type": "fixed",
            "splits": [{"user_id": "b2", "amount": "10"}, {"user_id": "c3", "amount": "20"}],
        },
    )

    assert response.status_code == 400
    assert "Total splits must equal expense amount" in response.json()["detail"]
    mock_db.expenses.insert_one.assert_not_called()


def test_expense_with_non_member(client, stored_group):
    response = client.post(
        f"/api/v1/groups/{stored_group.id}/expenses",
        json={
            "title": "Taxi",
            "amount": "40",
            "paid_by_id": "zz",
            "splits": [{"user_id": "a1"}],
        },
    )

    assert response.status_code == 400
    assert "not a member" in response.json()["detail"]


def test_expense_rejects_negative_amount(client, stored_group):
    response = client.post(
        f"/api/v1/groups/{stored_group.id}/expenses",
        json={"title": "Oops", "amount": "-5", "paid_by_id": "a1", "splits": [{"user_id": "a1"}]},
    )

    assert response.status_code == 422


def test_list_expenses(client, stored_ledger):
    response = client.get(f"/api/v1/groups/{stored_ledger.id}/expenses")

    assert response.status_code == 200
    assert response.json()[0]["title"] == "Dinner"
    assert response.json()[0]["amount"] == "90.00"


# ===== SETTLEMENTS =====

def test_record_settlement(client, mock_db, stored_group):
    mock_db.settlements.insert_one.return_value = MagicMock(inserted_id=ObjectId())

    response = client.post(
        f"/api/v1/groups/{stored_group.id}/settlements",
        json={"from_user_id": "c3", "to_user_id": "a1", "amount": "30.00"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["amount"] == "30.00"
    assert data["from_user_id"] == "c3"
    assert mock_db.settlements.insert_one.call_args[0][0]["amount_cents"] == 3000


def test_settlement_to_self_rejected(client, stored_group):
    response = client.post(
        f"/api/v1/groups/{stored_group.id}/settlements",
        json={"from_user_id": "a1", "to_user_id": "a1", "amount": "5"},
    )

    assert response.status_code == 400


def test_list_settlements(client, stored_ledger):
    response = client.get(f"/api/v1/groups/{stored_ledger.id}/settlements")

    assert response.status_code == 200
    assert response.json()[0]["from_user_id"] == "b2"


# ===== LEDGER =====

def test_ledger_balances(client, stored_ledger):
    response = client.get(f"/api/v1/groups/{stored_ledger.id}/ledger")

    assert response.status_code == 200
    data = response.json()
    assert {b["user_name"]: b["net"] for b in data["balances"]} == {
        "Alice": "30.00",
        "Bob": "0.00",
        "Charlie": "-30.00",
    }
    assert data["balances"][0]["total_paid"] == "90.00"
    assert data["balances"][0]["total_owed"] == "60.00"
    assert data["total_net"] == "0.00"
    assert data["is_balanced"] is True


def test_settle_up_plan(client, stored_ledger):
    response = client.get(f"/api/v1/groups/{stored_ledger.id}/ledger/transfers")

    assert response.status_code == 200
    data = response.json()
    assert data["transfers"] == [{
        "from_user_id": "c3",
        "from_user_name": "Charlie",
        "to_user_id": "a1",
        "to_user_name": "Alice",
        "amount": "30.00",
    }]
    assert data["total_amount"] == "30.00"
    assert data["is_valid"] is True


def test_settle_up_plan_when_settled(client, stored_group):
    with patch.object(ExpenseRepository, "list_expenses", new_callable=AsyncMock, return_value=[]), \
            patch.object(SettlementRepository, "list_settlements", new_callable=AsyncMock, return_value=[]):
        response = client.get(f"/api/v1/groups/{stored_group.id}/ledger/transfers")

    assert response.status_code == 200
    assert response.json()["transfers"] == []
    assert response.json()["total_amount"] == "0.00"


def test_ledger_with_corrupt_expense(client, stored_group):
    corrupt = Expense(
        group_id=stored_group.id,
        title="Ghost",
        amount_cents=1000,
        paid_by_id="a1",
        splits=[ExpenseSplit(user_id="gone", amount_cents=1000)],
    )
    with patch.object(ExpenseRepository, "list_expenses", new_callable=AsyncMock, return_value=[corrupt]), \
            patch.object(SettlementRepository, "list_settlements", new_callable=AsyncMock, return_value=[]):
        response = client.get(f"/api/v1/groups/{stored_group.id}/ledger")

    assert response.status_code == 400
    assert "gone" in response.json()["detail"]


def test_export_ledger_csv(client, stored_ledger):
    response = client.get(f"/api/v1/groups/{stored_ledger.id}/ledger/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="group-weekend-trip.csv"' in response.headers["content-disposition"]
    body = response.content.decode("utf-8-sig")
    assert body.splitlines()[0] == "Member Name,Total Paid,Total Owed,Net Balance"
    assert "Charlie,$0.00,$30.00,-$30.00" in body


def test_ledger_reports_unbalanced_group(client, stored_group, caplog):
    # Splits cover 20.00 of a 30.00 expense
    short = Expense(
        group_id=stored_group.id,
        title="Lunch",
        amount_cents=3000,
        paid_by_id="a1",
        splits=[ExpenseSplit(user_id="b2", amount_cents=1000), ExpenseSplit(user_id="c3", amount_cents=1000)],
    )
    with patch.object(ExpenseRepository, "list_expenses", new_callable=AsyncMock, return_value=[short]), \
            patch.object(SettlementRepository, "list_settlements", new_callable=AsyncMock, return_value=[]), \
            caplog.at_level(logging.WARNING):
        response = client.get(f"/api/v1/groups/{stored_group.id}/ledger")

    assert response.status_code == 200
    assert response.json()["total_net"] == "10.00"
    assert response.json()["is_balanced"] is False
    assert "do not sum to zero" in caplog.text


def test_settle_up_plan_with_residue(client, stored_group, caplog):
    # Alice +0.01, Bob +0.01, Charlie -0.02
    cents = [
        Expense(group_id=stored_group.id, title="Gum", amount_cents=1, paid_by_id=payer,
                splits=[ExpenseSplit(user_id="c3", amount_cents=1)])
        for payer in ("a1", "b2")
    ]
    with patch.object(ExpenseRepository, "list_expenses", new_callable=AsyncMock, return_value=cents), \
            patch.object(SettlementRepository, "list_settlements", new_callable=AsyncMock, return_value=[]), \
            caplog.at_level(logging.WARNING):
        response = client.get(f"/api/v1/groups/{stored_group.id}/ledger/transfers")

    assert response.status_code == 200
    assert response.json()["transfers"] == []
    assert response.json()["is_valid"] is False
    assert "leaves residual balances" in caplog.text


# ===== CURRENCY =====

def test_expense_in_other_currency_rejected(client, mock_db, stored_group):
    response = client.post(
        f"/api/v1/groups/{stored_group.id}/expenses",
        json={
            "title": "Museum",
            "amount": "20",
            "currency": "EUR",
            "paid_by_id": "a1",
            "splits": [{"user_id": "a1"}, {"user_id": "b2"}],
        },
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Currency EUR does not match group currency USD"
    mock_db.expenses.insert_one.assert_not_called()


def test_settlement_in_other_currency_rejected(client, mock_db, stored_group):
    response = client.post(
        f"/api/v1/groups/{stored_group.id}/settlements",
        json={"from_user_id": "b2", "to_user_id": "a1", "amount": "5", "currency": "GBP"},
    )

    assert response.status_code == 400
    mock_db.settlements.insert_one.assert_not_called()


def test_records_take_group_currency_by_default(client, mock_db):
    euro_group = Group(
        name="Paris",
        currency="EUR",
        members=[Member(user_id="a1", name="Ann"), Member(user_id="b2", name="Ben")],
    )
    mock_db.expenses.insert_one.return_value = MagicMock(inserted_id=ObjectId())
    mock_db.settlements.insert_one.return_value = MagicMock(inserted_id=ObjectId())

    with patch.object(GroupRepository, "get_group", new_callable=AsyncMock, return_value=euro_group):
        expense = client.post(
            f"/api/v1/groups/{euro_group.id}/expenses",
            json={"title": "Bread", "amount": "4", "paid_by_id": "a1", "splits": [{"user_id": "b2"}]},
        )
        settlement = client.post(
            f"/api/v1/groups/{euro_group.id}/settlements",
            json={"from_user_id": "b2", "to_user_id": "a1", "amount": "4"},
        )

    assert expense.status_code == 201
    assert expense.json()["currency"] == "EUR"
    assert mock_db.expenses.insert_one.call_args[0][0]["currency"] == "EUR"
    assert settlement.status_code == 201
    assert settlement.json()["currency"] == "EUR"
