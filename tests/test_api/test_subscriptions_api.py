# tests/test_api/test_subscriptions_api.py

from datetime import timedelta

from tests.fixtures.auth import auth_headers, make_token

BASE = "/api/v1/subscriptions"


def _assert_no_store(resp):
    assert resp.headers["cache-control"] == "no-store"
    assert resp.headers["pragma"] == "no-cache"


# ─────────────────────────────────────────────────────────────
# Auth
# ─────────────────────────────────────────────────────────────

def test_subscribe_requires_token(api):
    r = api.client.post(f"{BASE}/subscribe", json={"plan": "weekly"})
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"
    assert r.headers["content-type"].startswith("application/problem+json")
    assert r.json()["status"] == 401


def test_expired_token_rejected(api):
    token = make_token("user-1", expires_in=timedelta(seconds=-30))
    r = api.client.get(f"{BASE}/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_refresh_token_rejected(api):
    token = make_token("user-1", token_type="refresh")
    r = api.client.get(f"{BASE}/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_token_signed_with_other_secret_rejected(api):
    token = make_token("user-1", secret="not-the-server-secret")
    r = api.client.get(f"{BASE}/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


# ─────────────────────────────────────────────────────────────
# Subscribe
# ─────────────────────────────────────────────────────────────

def test_subscribe_weekly_creates_active_row(api, viewer_headers):
    r = api.client.post(f"{BASE}/subscribe", json={"plan": "weekly"}, headers=viewer_headers)
    assert r.status_code == 201, r.text
    _assert_no_store(r)
    body = r.json()
    assert body["user_id"] == "user-1"
    assert body["plan"] == "weekly"
    assert body["status"] == "active"
    assert body["amount"] == 99
    assert body["auto_renew"] is True
    assert body["renews_at"].startswith("2025-03-19T10:30:00")


def test_subscribe_plan_is_case_insensitive(api, viewer_headers):
    r = api.client.post(f"{BASE}/subscribe", json={"plan": " Monthly "}, headers=viewer_headers)
    assert r.status_code == 201
    assert r.json()["amount"] == 199
    assert r.json()["renews_at"].startswith("2025-04-12T10:30:00")


def test_subscribe_unknown_plan_is_400_problem(api, viewer_headers):
    r = api.client.post(f"{BASE}/subscribe", json={"plan": "yearly"}, headers=viewer_headers)
    assert r.status_code == 400
    assert r.headers["content-type"].startswith("application/problem+json")
    body = r.json()
    assert body["code"] == 40001
    assert body["details"]["plan"] == "yearly"
    assert body["request_id"] == r.headers["x-request-id"]


def test_subscribe_missing_plan_is_422(api, viewer_headers):
    r = api.client.post(f"{BASE}/subscribe", json={}, headers=viewer_headers)
    assert r.status_code == 422
    assert r.json()["errors"]


def test_resubscribe_appends_history(api, viewer_headers):
    api.client.post(f"{BASE}/subscribe", json={"plan": "weekly"}, headers=viewer_headers)
    api.clock.advance(minutes=1)
    r = api.client.post(f"{BASE}/subscribe", json={"plan": "monthly"}, headers=viewer_headers)
    assert r.status_code == 201

    me = api.client.get(f"{BASE}/me", headers=viewer_headers).json()
    assert me["plan"] == "monthly"


# ─────────────────────────────────────────────────────────────
# Me / cancel
# ─────────────────────────────────────────────────────────────

def test_me_without_history_is_null(api, viewer_headers):
    r = api.client.get(f"{BASE}/me", headers=viewer_headers)
    assert r.status_code == 200
    _assert_no_store(r)
    assert r.json() is None


def test_me_reports_lazy_expiry(api, viewer_headers):
    api.client.post(f"{BASE}/subscribe", json={"plan": "weekly"}, headers=viewer_headers)
    api.clock.advance(days=8)
    body = api.client.get(f"{BASE}/me", headers=viewer_headers).json()
    assert body["status"] == "expired"


def test_cancel_without_subscription_is_404(api, viewer_headers):
    r = api.client.post(f"{BASE}/cancel", headers=viewer_headers)
    assert r.status_code == 404
    assert r.json()["code"] == 40401


def test_cancel_active_subscription(api, viewer_headers):
    api.client.post(f"{BASE}/subscribe", json={"plan": "monthly"}, headers=viewer_headers)
    r = api.client.post(f"{BASE}/cancel", headers=viewer_headers)
    assert r.status_code == 200
    _assert_no_store(r)
    assert r.json()["status"] == "canceled"

    me = api.client.get(f"{BASE}/me", headers=viewer_headers).json()
    assert me["status"] == "canceled"

    again = api.client.post(f"{BASE}/cancel", headers=viewer_headers)
    assert again.status_code == 404
    assert again.json()["details"]["current_status"] == "canceled"


def test_users_are_isolated(api, viewer_headers):
    api.client.post(f"{BASE}/subscribe", json={"plan": "weekly"}, headers=viewer_headers)
    other = api.client.get(f"{BASE}/me", headers=auth_headers("user-2")).json()
    assert other is None
