"""
Budget ownership guard and the budget-scoped CRUD routes.
"""
import uuid

from conftest import make_budget, make_user
from models import storage
from models.category import Category
from models.category_group import CategoryGroup
from models.transaction import Transaction


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------

def test_foreign_and_missing_budgets_get_the_same_404(client, auth_headers):
    make_user("bobby01")
    foreign = make_budget("bobby01")

    for budget_id in (foreign.id, str(uuid.uuid4())):
        resp = client.get(f"/api/v1/budgets/{budget_id}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.get_json()["message"] == "budget not found or user has no permission"


def test_malformed_budget_id(client, auth_headers):
    resp = client.get("/api/v1/budgets/not-a-uuid/accounts", headers=auth_headers)
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "invalid request"


def test_foreign_budget_cannot_be_deleted(client, auth_headers):
    make_user("bobby01")
    foreign = make_budget("bobby01")
    resp = client.delete(f"/api/v1/budgets/{foreign.id}", headers=auth_headers)
    assert resp.status_code == 404
    assert storage.get_budget(foreign.id, "bobby01") is not None


def test_list_budgets_only_returns_own(client, auth_headers):
    make_user("bobby01")
    make_budget("bobby01", name="Bob's")
    make_budget("alice01", name="Alice's")
    data = client.get("/api/v1/budgets", headers=auth_headers).get_json()["data"]
    assert [b["name"] for b in data] == ["Alice's"]


# ---------------------------------------------------------------------------
# Budgets and accounts
# ---------------------------------------------------------------------------

def test_create_budget_and_duplicate(client, auth_headers):
    body = {"name": "Household", "currency_code": "usd"}
    resp = client.post("/api/v1/budgets", json=body, headers=auth_headers)
    assert resp.status_code == 201
    assert resp.get_json()["data"]["currency_code"] == "USD"

    resp = client.post("/api/v1/budgets", json=body, headers=auth_headers)
    assert resp.status_code == 409


def test_account_lifecycle(client, auth_headers):
    budget = make_budget("alice01")
    base = f"/api/v1/budgets/{budget.id}/accounts"

    resp = client.post(base, json={"name": "Wallet", "type": "Checking", "balance": 1500}, headers=auth_headers)
    assert resp.status_code == 201
    account = resp.get_json()["data"]
    assert account["type"] == "checking"

    resp = client.put(f"{base}/{account['id']}", json={"closed": True}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["closed"] is True

    detail = client.get(f"/api/v1/budgets/{budget.id}", headers=auth_headers).get_json()["data"]
    assert [a["name"] for a in detail["accounts"]] == ["Wallet"]

    assert client.delete(f"{base}/{account['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"{base}/{account['id']}", headers=auth_headers).status_code == 404


def test_invalid_account_type(client, auth_headers):
    budget = make_budget("alice01")
    resp = client.post(
        f"/api/v1/budgets/{budget.id}/accounts",
        json={"name": "Brokerage", "type": "stocks"},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "invalid account type"


# ---------------------------------------------------------------------------
# Categories, payees, transactions
# ---------------------------------------------------------------------------

def _setup_budget_with_refs(client, headers, budget_id):
    base = f"/api/v1/budgets/{budget_id}"
    account = client.post(f"{base}/accounts", json={"name": "Wallet", "type": "savings"}, headers=headers)
    group = client.post(f"{base}/category-groups", json={"name": "Monthly bills"}, headers=headers)
    group_id = group.get_json()["data"]["id"]
    category = client.post(f"{base}/categories/{group_id}", json={"name": "Rent"}, headers=headers)
    payee = client.post(f"{base}/payees", json={"name": "Landlord"}, headers=headers)
    return (
        account.get_json()["data"]["id"],
        group_id,
        category.get_json()["data"]["id"],
        payee.get_json()["data"]["id"],
    )


def test_categories_are_listed_by_group(client, auth_headers):
    budget = make_budget("alice01")
    _, group_id, category_id, _ = _setup_budget_with_refs(client, auth_headers, budget.id)

    data = client.get(f"/api/v1/budgets/{budget.id}/categories", headers=auth_headers).get_json()["data"]
    assert data == [{
        "category_group_id": group_id,
        "name": "Monthly bills",
        "categories": [{"id": category_id, "category_group_id": group_id, "name": "Rent"}],
    }]


def test_category_groups_list_and_rename(client, auth_headers):
    budget = make_budget("alice01")
    base = f"/api/v1/budgets/{budget.id}/category-groups"
    group_id = client.post(base, json={"name": "Monthly bills"}, headers=auth_headers).get_json()["data"]["id"]

    resp = client.put(f"{base}/{group_id}", json={"name": "Yearly bills"}, headers=auth_headers)
    assert resp.status_code == 200

    data = client.get(base, headers=auth_headers).get_json()["data"]
    assert data == [{"id": group_id, "budget_id": budget.id, "name": "Yearly bills"}]
    assert client.get(f"/api/v1/budgets/{budget.id}/category_groups", headers=auth_headers).status_code == 404


def test_category_group_name_too_short(client, auth_headers):
    budget = make_budget("alice01")
    resp = client.post(f"/api/v1/budgets/{budget.id}/category-groups", json={"name": "Bill"}, headers=auth_headers)
    assert resp.status_code == 400


def test_create_transaction(client, auth_headers):
    budget = make_budget("alice01")
    account_id, _, category_id, payee_id = _setup_budget_with_refs(client, auth_headers, budget.id)

    resp = client.post(
        f"/api/v1/budgets/{budget.id}/transactions",
        json={
            "account_id": account_id,
            "payee_id": payee_id,
            "category_id": category_id,
            "date": "2024-01-31",
            "amount": -120000,
            "memo": "January rent",
        },
        headers=auth_headers,
    )
    assert resp.status_code == 201
    tx = resp.get_json()["data"]
    assert tx["account_name"] == "Wallet"
    assert tx["payee_name"] == "Landlord"
    assert tx["category_name"] == "Rent"

    listing = client.get(f"/api/v1/budgets/{budget.id}/transactions", headers=auth_headers).get_json()
    assert listing["meta"]["total"] == 1


def test_transaction_references_must_belong_to_the_budget(client, auth_headers):
    own = make_budget("alice01", name="Own")
    other = make_budget("alice01", name="Other")
    _, _, category_id, payee_id = _setup_budget_with_refs(client, auth_headers, own.id)
    other_account_id, _, _, _ = _setup_budget_with_refs(client, auth_headers, other.id)

    resp = client.post(
        f"/api/v1/budgets/{own.id}/transactions",
        json={
            "account_id": other_account_id,
            "payee_id": payee_id,
            "category_id": category_id,
            "date": "2024-01-31",
            "amount": 100,
        },
        headers=auth_headers,
    )
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "account not found in budget"


def test_deleting_a_category_uncategorizes_its_transactions(client, auth_headers):
    budget = make_budget("alice01")
    account_id, _, category_id, payee_id = _setup_budget_with_refs(client, auth_headers, budget.id)
    tx = client.post(
        f"/api/v1/budgets/{budget.id}/transactions",
        json={"account_id": account_id, "payee_id": payee_id, "category_id": category_id,
              "date": "2024-02-01", "amount": -500},
        headers=auth_headers,
    ).get_json()["data"]

    resp = client.delete(f"/api/v1/budgets/{budget.id}/categories/{category_id}", headers=auth_headers)
    assert resp.status_code == 200
    assert storage.get(Category, category_id) is None
    assert storage.get(Transaction, tx["id"]).category_id is None


def test_delete_category_group_not_in_budget(client, auth_headers):
    own = make_budget("alice01", name="Own")
    other = make_budget("alice01", name="Other")
    _, group_id, _, _ = _setup_budget_with_refs(client, auth_headers, other.id)

    resp = client.delete(f"/api/v1/budgets/{own.id}/category-groups/{group_id}", headers=auth_headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "category group id not found"
    assert storage.get(CategoryGroup, group_id) is not None


def test_payee_in_use_cannot_be_deleted(client, auth_headers):
    budget = make_budget("alice01")
    account_id, _, category_id, payee_id = _setup_budget_with_refs(client, auth_headers, budget.id)
    client.post(
        f"/api/v1/budgets/{budget.id}/transactions",
        json={"account_id": account_id, "payee_id": payee_id, "category_id": category_id,
              "date": "2024-02-01", "amount": -500},
        headers=auth_headers,
    )
    resp = client.delete(f"/api/v1/budgets/{budget.id}/payees/{payee_id}", headers=auth_headers)
    assert resp.status_code == 409


def test_token_of_deleted_user_sees_nothing(client, auth_headers):
    make_budget("alice01")
    client.delete("/api/v1/user", headers=auth_headers)
    data = client.get("/api/v1/budgets", headers=auth_headers).get_json()["data"]
    assert data == []
