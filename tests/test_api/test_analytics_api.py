"""
API tests for /api/v1/analytics
"""
import pytest

SUBS = "/api/v1/subscriptions/"
BASE = "/api/v1/analytics"


def _create(client, name, cost, cycle="monthly", due="2024-01-15", status="active", category=None):
    payload = {
        "name": name,
        "cost": cost,
        "billingCycle": cycle,
        "nextPaymentDate": due,
        "status": status,
        "category": category,
    }
    resp = client.post(SUBS, json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def portfolio(client):
    _create(client, "Netflix", 15.99, due="2024-01-05", category="streaming")
    _create(client, "Domain", 120, cycle="yearly", due="2024-06-01", category="domain")
    _create(client, "AWS", 30, cycle="quarterly", due="2023-12-20", category="cloud")
    _create(client, "Trial App", 5, due="2024-01-03", status="trial")
    _create(client, "Gym", 40, due="2024-01-02", status="paused", category="health")
    return client


def test_summary(portfolio):
    resp = portfolio.get(f"{BASE}/summary", params={"today": "2024-01-01"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["currency"] == "USD"
    assert body["monthly_total"] == pytest.approx(15.99 + 10 + 10 + 5)
    assert body["yearly_total"] == pytest.approx(191.88 + 120 + 120 + 60)
    assert body["average_monthly"] == pytest.approx(body["yearly_total"] / 12)
    assert body["chargeable_count"] == 4
    # Netflix and Trial App fall inside the next 7 days
    assert body["upcoming_count"] == 2
    assert body["monthly_total_formatted"] == "$40.99"


def test_summary_in_other_currency(portfolio):
    resp = portfolio.get(f"{BASE}/summary", params={"currency": "eur", "today": "2024-01-01"})
    assert resp.status_code == 200
    assert resp.json()["currency"] == "EUR"
    assert "€" in resp.json()["monthly_total_formatted"]


def test_summary_unsupported_currency(client):
    resp = client.get(f"{BASE}/summary", params={"currency": "XYZ"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_CURRENCY"


def test_summary_empty(client):
    body = client.get(f"{BASE}/summary").json()
    assert body["monthly_total"] == 0
    assert body["chargeable_count"] == 0


def test_categories(portfolio):
    body = portfolio.get(f"{BASE}/categories").json()
    assert [c["category"] for c in body] == ["streaming", "domain", "cloud", "other"]
    assert body[0]["monthly_cost"] == pytest.approx(15.99)
    assert sum(c["share"] for c in body) == pytest.approx(1.0)


def test_categories_date_range(portfolio):
    body = portfolio.get(f"{BASE}/categories", params={"from": "2024-01-01", "to": "2024-01-31"}).json()
    assert [c["category"] for c in body] == ["streaming", "other"]


def test_top(portfolio):
    body = portfolio.get(f"{BASE}/top", params={"n": 2}).json()
    assert [t["subscription"]["name"] for t in body] == ["Netflix", "Domain"]
    assert body[1]["monthly_cost"] == pytest.approx(10.0)


def test_top_rejects_zero(client):
    assert client.get(f"{BASE}/top", params={"n": 0}).status_code == 422


def test_reminders(portfolio):
    resp = portfolio.get(f"{BASE}/reminders", params={"today": "2024-01-01", "horizon_days": 7})
    assert resp.status_code == 200
    body = resp.json()
    assert [r["subscription"]["name"] for r in body["overdue"]] == ["AWS"]
    assert body["overdue"][0]["days_overdue"] == 12
    # trial and paused subscriptions never produce reminders
    assert [r["subscription"]["name"] for r in body["due_soon"]] == ["Netflix"]
    assert body["due_soon"][0]["days_until"] == 4
    assert body["due_soon"][0]["urgent"] is True
    assert body["urgent_count"] == 1
