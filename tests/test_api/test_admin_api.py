# tests/test_api/test_admin_api.py

import pytest

from tests.fixtures.auth import auth_headers

BASE = "/api/v1/admin"


def _subscribe(api, user_id, plan):
    r = api.client.post("/api/v1/subscriptions/subscribe", json={"plan": plan}, headers=auth_headers(user_id))
    assert r.status_code == 201
    return r.json()


@pytest.mark.parametrize("path", ["/revenue", "/subscriptions/stats", "/subscriptions"])
def test_admin_routes_require_token(api, path):
    assert api.client.get(f"{BASE}{path}").status_code == 401


@pytest.mark.parametrize("path", ["/revenue", "/subscriptions/stats", "/subscriptions"])
def test_admin_routes_reject_viewers(api, viewer_headers, path):
    r = api.client.get(f"{BASE}{path}", headers=viewer_headers)
    assert r.status_code == 403
    assert r.headers["content-type"].startswith("application/problem+json")


# ─────────────────────────────────────────────────────────────
# Revenue
# ─────────────────────────────────────────────────────────────

def test_revenue_defaults_to_month_with_camel_case_keys(api, admin_headers):
    _subscribe(api, "u1", "weekly")
    _subscribe(api, "u2", "monthly")

    r = api.client.get(f"{BASE}/revenue", headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["cache-control"] == "no-store"
    body = r.json()
    assert body["period"] == "month"
    assert body["totalRevenue"] == 298
    assert body["activeSubscribers"] == 2
    assert "generatedAt" in body and "total_revenue" not in body
    assert [(b["label"], b["amount"], b["count"]) for b in body["bucketed"]] == [("March 2025", 298, 2)]


def test_revenue_weekly_buckets(api, admin_headers):
    _subscribe(api, "u1", "weekly")
    body = api.client.get(f"{BASE}/revenue", params={"period": "week"}, headers=admin_headers).json()
    assert body["period"] == "week"
    assert [b["label"] for b in body["bucketed"]] == ["March 2025 - Week 2"]


def test_revenue_rejects_unknown_period(api, admin_headers):
    r = api.client.get(f"{BASE}/revenue", params={"period": "year"}, headers=admin_headers)
    assert r.status_code == 422


# ─────────────────────────────────────────────────────────────
# Subscriptions
# ─────────────────────────────────────────────────────────────

def test_stats(api, admin_headers):
    _subscribe(api, "u1", "weekly")
    _subscribe(api, "u2", "monthly")
    _subscribe(api, "u3", "monthly")
    api.client.post("/api/v1/subscriptions/cancel", headers=auth_headers("u3"))

    body = api.client.get(f"{BASE}/subscriptions/stats", headers=admin_headers).json()
    assert body["weekly"] == 1
    assert body["monthly"] == 1
    assert body["inactive"] == 1
    assert body["estimatedMonthlyRevenue"] == 99 * 4 + 199
    assert body["currency"] == "INR"
    assert body["byStatus"]["canceled"] == 1


def test_list_paginates_with_headers(api, admin_headers):
    for i in range(3):
        _subscribe(api, f"u{i}", "weekly")
        api.clock.advance(minutes=1)

    r = api.client.get(f"{BASE}/subscriptions", params={"page": 1, "page_size": 2}, headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["x-total-count"] == "3"
    assert 'rel="next"' in r.headers["link"]
    body = r.json()
    assert body["total"] == 3
    assert [i["user_id"] for i in body["items"]] == ["u2", "u1"]


def test_list_filters_by_status(api, admin_headers):
    _subscribe(api, "u1", "weekly")
    _subscribe(api, "u2", "weekly")
    api.client.post("/api/v1/subscriptions/cancel", headers=auth_headers("u2"))

    body = api.client.get(f"{BASE}/subscriptions", params={"status": "canceled"}, headers=admin_headers).json()
    assert [i["user_id"] for i in body["items"]] == ["u2"]
