"""
Login, token renewal, email verification and the bearer-token middleware.
"""
from datetime import timedelta

from api import create_app
from api.config import TestingConfig
from conftest import DEFAULT_PASSWORD, bearer, login, make_user
from models import storage
from models.base_model import utc_now
from models.session import Session
from models.verify_email import VerifyEmail
from utils.token_builder import TokenKind
from worker.tasks import TASK_SEND_VERIFY_EMAIL


def _pending_verification(username="alice01", **overrides):
    fields = dict(
        username=username,
        email=f"{username}@example.com",
        code="a" * 32,
        expires_at=utc_now() + timedelta(minutes=15),
    )
    fields.update(overrides)
    record = VerifyEmail(**fields)
    storage.new(record)
    storage.save()
    return record


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

def test_login_success_creates_session(client, user):
    resp = login(client)
    assert resp.status_code == 200
    body = resp.get_json()
    for key in ("session_id", "access_token", "access_token_expires_at",
                "refresh_token", "refresh_token_expires_at", "username", "email"):
        assert key in body
    assert body["username"] == "alice01"

    session = storage.get(Session, body["session_id"])
    assert session is not None
    assert session.username == "alice01"
    assert session.refresh_token == body["refresh_token"]
    assert session.is_blocked is False
    assert session.client_ip == "127.0.0.1"


def test_login_behind_proxy_records_forwarded_client_ip(monkeypatch, distributor, user):
    monkeypatch.setattr(TestingConfig, "PROXY_FIX_X_FOR", 1)
    client = create_app("test", task_distributor=distributor).test_client()

    resp = client.post(
        "/api/v1/login",
        json={"username": "alice01", "password": DEFAULT_PASSWORD},
        headers={"X-Forwarded-For": "203.0.113.7"},
    )
    assert resp.status_code == 200
    assert storage.get(Session, resp.get_json()["session_id"]).client_ip == "203.0.113.7"


def test_forwarded_for_is_ignored_without_proxy_config(client, user):
    resp = client.post(
        "/api/v1/login",
        json={"username": "alice01", "password": DEFAULT_PASSWORD},
        headers={"X-Forwarded-For": "203.0.113.7"},
    )
    assert storage.get(Session, resp.get_json()["session_id"]).client_ip == "127.0.0.1"


def test_login_wrong_password_and_unknown_user_look_the_same(client, user):
    wrong = login(client, password="not-the-password")
    unknown = login(client, username="nobody01")
    assert wrong.status_code == unknown.status_code == 404
    assert wrong.get_json()["message"] == unknown.get_json()["message"] == "invalid username or password"


def test_login_validation_error(client):
    resp = client.post("/api/v1/login", json={"username": "abc", "password": "short"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "INVALID_INPUT"
    assert "username" in body["details"]["fields"]


def test_login_unverified_without_pending_code_resends(client, distributor):
    make_user(verified=False)
    resp = login(client)
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "email not verified, verification email resent"
    assert len(distributor.calls) == 1
    task_name, payload = distributor.calls[0]
    assert task_name == TASK_SEND_VERIFY_EMAIL
    assert payload.username == "alice01"


def test_login_unverified_with_pending_code_does_not_resend(client, distributor):
    make_user(verified=False)
    _pending_verification()
    resp = login(client)
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "email not verified, please check the verification email"
    assert distributor.calls == []


# ---------------------------------------------------------------------------
# Renew token
# ---------------------------------------------------------------------------

def test_renew_token_success(client, user):
    body = login(client).get_json()
    resp = client.post("/api/v1/renew_token", json={"refresh_token": body["refresh_token"]})
    assert resp.status_code == 200
    renewed = resp.get_json()
    assert renewed["session_id"] == body["session_id"]
    assert renewed["access_token"]

    # the new access token opens protected routes
    assert client.get("/api/v1/budgets", headers=bearer(renewed["access_token"])).status_code == 200


def test_renew_token_blocked_session(client, user):
    body = login(client).get_json()
    session = storage.get(Session, body["session_id"])
    session.is_blocked = True
    storage.save()

    resp = client.post("/api/v1/renew_token", json={"refresh_token": body["refresh_token"]})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "token is blocked"


def test_renew_token_rejects_access_token(client, user):
    body = login(client).get_json()
    resp = client.post("/api/v1/renew_token", json={"refresh_token": body["access_token"]})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "invalid refresh token"


def test_renew_token_unknown_session(client, app, user):
    token, payload = app.extensions["token_builder"].create_token(
        "alice01", timedelta(hours=1), TokenKind.REFRESH
    )
    resp = client.post("/api/v1/renew_token", json={"refresh_token": token})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == f"cannot find session with ID {payload.id}"


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

def test_missing_authorization_header(client):
    resp = client.get("/api/v1/budgets")
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "authorization header is not provided"


def test_malformed_authorization_header(client):
    resp = client.get("/api/v1/budgets", headers={"Authorization": "Bearer"})
    assert resp.get_json()["message"] == "invalid authorization header format"


def test_unsupported_authorization_type(client):
    resp = client.get("/api/v1/budgets", headers={"Authorization": "Basic abc"})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "authorization header is not supported"


def test_refresh_token_is_not_an_access_token(client, user):
    body = login(client).get_json()
    resp = client.get("/api/v1/budgets", headers=bearer(body["refresh_token"]))
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "invalid session token"


def test_expired_access_token(client, app, user):
    token, _ = app.extensions["token_builder"].create_token("alice01", timedelta(minutes=-1))
    resp = client.get("/api/v1/budgets", headers=bearer(token))
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "token has expired"


# ---------------------------------------------------------------------------
# Verify email
# ---------------------------------------------------------------------------

def test_verify_email_success(client):
    make_user(verified=False)
    record = _pending_verification()
    resp = client.get(f"/api/v1/verify_email?id={record.id}&code={record.code}")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["email_verified"] is True

    resp = client.get(f"/api/v1/verify_email?id={record.id}&code={record.code}")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "email is already verified"


def test_verify_email_wrong_code(client):
    make_user(verified=False)
    record = _pending_verification()
    resp = client.get(f"/api/v1/verify_email?id={record.id}&code={'b' * 32}")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "invalid code"


def test_verify_email_expired_code(client):
    make_user(verified=False)
    record = _pending_verification(expires_at=utc_now() - timedelta(minutes=1))
    resp = client.get(f"/api/v1/verify_email?id={record.id}&code={record.code}")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "code is expired, please login again to resend verification email"


def test_verify_email_missing_params(client):
    resp = client.get("/api/v1/verify_email")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "invalid request"


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "database": "ok"}
