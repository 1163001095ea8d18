import pytest
from fastapi.testclient import TestClient

from expense_store import InMemoryExpenseStore
from main import app, get_expense_store


HEADERS = {"X-User-Id": "B"}


@pytest.fixture
def client(store):
    app.dependency_overrides[get_expense_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_missing_user_header_is_unauthorized(client):
    response = client.get("/balance/H1")

    assert response.status_code == 401


def test_create_and_list_expenses(client):
    response = client.post("/expenses", headers=HEADERS, json={
        "household_id": "H1",
        "name": "Internet",
        "amount": 60,
        "payer": "B",
        "participants": [{"user": "A", "share": 0.5}, {"user": "B", "share": 0.5}],
        "date": "2024-03-05"
    })

    assert response.status_code == 201
    created = response.json()
    assert created["is_completely_paid"] is False
    assert created["participants"][0] == {"user": "A", "share": 0.5, "is_paid": False, "amount_paid": 0.0}

    listed = client.get("/expenses/H1", headers=HEADERS).json()
    assert sorted(e["name"] for e in listed) == ["Expense E1", "Internet"]


def test_create_expense_with_bad_shares(client):
    response = client.post("/expenses", headers=HEADERS, json={
        "household_id": "H1",
        "name": "Internet",
        "amount": 60,
        "payer": "B",
        "participants": [{"user": "A", "share": 0.5}, {"user": "B", "share": 0.2}]
    })

    assert response.status_code == 400
    assert "sum to 1" in response.json()["detail"]


def test_balances_and_settle_up(client):
    assert client.get("/balance/H1", headers=HEADERS).json() == {"A": 90.0, "B": -45.0, "C": -45.0}

    settlements = client.get("/settle-up/H1", headers=HEADERS).json()
    assert sorted((t["from"], t["to"], t["amount"]) for t in settlements) == [
        ("B", "A", 45.0),
        ("C", "A", 45.0),
    ]


def test_unknown_household_is_empty(client):
    assert client.get("/balance/nobody", headers=HEADERS).json() == {}
    assert client.get("/settle-up/nobody", headers=HEADERS).json() == []


def test_pay_share_then_settle_up(client):
    response = client.post("/pay/E1", headers=HEADERS, json={"amount": 45})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["expense"]["is_completely_paid"] is False

    settlements = client.get("/settle-up/H1", headers=HEADERS).json()
    assert settlements == [{"from": "C", "to": "A", "amount": 45.0}]


@pytest.mark.parametrize("expense_id, user, amount, status", [
    ("missing", "B", 45, 404),
    ("E1", "Z", 45, 403),
    ("E1", "B", 40, 400),
])
def test_pay_share_errors(client, expense_id, user, amount, status):
    response = client.post(f"/pay/{expense_id}", headers={"X-User-Id": user}, json={"amount": amount})

    assert response.status_code == status


def test_pay_share_twice(client):
    client.post("/pay/E1", headers=HEADERS, json={"amount": 45})
    response = client.post("/pay/E1", headers=HEADERS, json={"amount": 45})

    assert response.status_code == 400
    assert response.json()["detail"] == "You already paid your share"


def test_explain_member_balance(client):
    body = client.get("/balance/H1/B", headers=HEADERS).json()

    assert body["net_balance"] == -45.0
    assert body["contributions"][0]["balance_effect"] == -45.0


def test_settle_up_report_is_a_pdf(client):
    response = client.get("/settle-up/H1/report", headers=HEADERS)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_store_unavailable_maps_to_503():
    class BrokenStore(InMemoryExpenseStore):
        def fetch_expenses(self, household_id):
            raise RuntimeError("Firestore is not available")

    app.dependency_overrides[get_expense_store] = lambda: BrokenStore()
    try:
        response = TestClient(app).get("/balance/H1", headers=HEADERS)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503


def test_pay_share_with_nan_amount_is_rejected(client):
    response = client.post(
        "/pay/E1",
        headers={**HEADERS, "Content-Type": "application/json"},
        content='{"amount": NaN}'
    )

    assert response.status_code == 422
    assert client.get("/balance/H1", headers=HEADERS).json()["B"] == -45.0
