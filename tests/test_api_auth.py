from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from taskboard.app.auth import COOKIE_NAME, issue_oauth_state
from taskboard.app.config import get_settings
from taskboard.app.models import User
from taskboard.app.routers import auth as auth_router
from taskboard.app.services.google_oauth import GoogleOAuthError, OAuthProfile
from tests.helpers import signup


def test_signup_sets_session_and_me_works(client) -> None:
    user = signup(client, "me@example.com", name="Me")
    assert COOKIE_NAME in client.cookies

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["id"] == user["id"]
    assert me.json()["email"] == "me@example.com"


def test_me_for_a_deleted_account_is_unauthenticated(client, app_db) -> None:
    user = signup(client, "gone@example.com")
    with app_db.session() as session:
        session.query(User).filter(User.id == user["id"]).delete()
        session.commit()

    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Unauthorized", "error": "Unauthenticated"}


def test_duplicate_signup_is_conflict(client) -> None:
    signup(client, "dup@example.com")
    resp = client.post("/api/auth/signup", json={"email": "DUP@example.com", "password": "x"})
    assert resp.status_code == 409
    assert resp.json() == {"ok": False, "next_location": None, "reason": "user_exists", "user": None}


def test_signup_can_be_disabled(client, monkeypatch) -> None:
    monkeypatch.setenv("FEATURE_SIGNUP", "false")
    resp = client.post("/api/auth/signup", json={"email": "late@example.com", "password": "x"})
    assert resp.status_code == 403
    assert resp.json()["reason"] == "signup_disabled"


def test_login_logout(make_client) -> None:
    first = make_client()
    signup(first, "login@example.com", password="s3cret-pass")

    client = make_client()
    bad = client.post("/api/auth/login", json={"email": "login@example.com", "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json()["reason"] == "invalid_credentials"

    ok = client.post("/api/auth/login", json={"email": "login@example.com", "password": "s3cret-pass"})
    assert ok.status_code == 200
    assert ok.json()["next_location"] == "/"
    assert client.get("/api/auth/me").status_code == 200

    out = client.post("/api/auth/logout")
    assert out.json()["next_location"] == "/login"
    assert client.get("/api/auth/me").status_code == 401


def test_google_disabled_without_credentials(client) -> None:
    resp = client.get("/api/auth/google/login", follow_redirects=False)
    assert resp.status_code == 404


@pytest.fixture()
def google_enabled(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "google_client_id", "client-id")
    monkeypatch.setattr(settings, "google_client_secret", "client-secret")
    return settings


def test_google_login_redirects_with_signed_state(client, google_enabled) -> None:
    resp = client.get("/api/auth/google/login", params={"next": "/tasks"}, follow_redirects=False)
    assert resp.status_code == 302
    location = urlsplit(resp.headers["location"])
    assert location.netloc == "accounts.google.com"
    query = parse_qs(location.query)
    assert query["client_id"] == ["client-id"]
    assert query["state"][0]


def test_google_callback_creates_account_and_session(client, google_enabled, monkeypatch) -> None:
    async def fake_fetch_profile(code, settings):
        assert code == "auth-code"
        return OAuthProfile(email="oauth@example.com", name="OAuth User", image="https://img/o.png")

    monkeypatch.setattr(auth_router.google_oauth, "fetch_profile", fake_fetch_profile)
    state = issue_oauth_state(google_enabled.session_secret, "/tasks")

    resp = client.get(
        "/api/auth/google/callback",
        params={"code": "auth-code", "state": state},
        follow_redirects=False,
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == "/tasks"

    me = client.get("/api/auth/me").json()
    assert me["email"] == "oauth@example.com"
    assert me["image"] == "https://img/o.png"


def test_google_callback_rejects_bad_state(client, google_enabled) -> None:
    resp = client.get(
        "/api/auth/google/callback",
        params={"code": "auth-code", "state": "forged"},
        follow_redirects=False,
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login?error=oauth_failed"
    assert COOKIE_NAME not in client.cookies


def test_google_callback_provider_failure(client, google_enabled, monkeypatch) -> None:
    async def failing_fetch_profile(code, settings):
        raise GoogleOAuthError("token exchange failed")

    monkeypatch.setattr(auth_router.google_oauth, "fetch_profile", failing_fetch_profile)
    state = issue_oauth_state(google_enabled.session_secret)

    resp = client.get(
        "/api/auth/google/callback",
        params={"code": "auth-code", "state": state},
        follow_redirects=False,
    )
    assert resp.headers["location"] == "/login?error=oauth_failed"
