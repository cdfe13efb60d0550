"""Tests for the sample app routes: login, callback, profile with refresh, logout."""
import os
import time
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import jwt
import pytest
from fastapi.testclient import TestClient

from line_login.config import LINE_ISSUER
from line_login.main import app

CHANNEL_ID = os.environ["LINE_LOGIN_CHANNEL_ID"]
SECRET = os.environ["LINE_LOGIN_CHANNEL_SECRET"]


class MockResponse:
    def __init__(self, status_code=200, body=None, reason_phrase="OK"):
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self._body = body

    def json(self):
        return self._body


@pytest.fixture
def client():
    return TestClient(app)


def _start(client):
    r = client.get("/login/", follow_redirects=False)
    assert r.status_code == 302
    return {k: v[0] for k, v in parse_qs(urlparse(r.headers["location"]).query).items()}


def _token_body(nonce, expires_in=2592000):
    now = int(time.time())
    id_token = jwt.encode(
        {"iss": LINE_ISSUER, "sub": "U42", "aud": CHANNEL_ID, "exp": now + 600, "iat": now, "nonce": nonce, "name": "Brown"},
        SECRET,
        algorithm="HS256",
    )
    return {
        "access_token": "at",
        "token_type": "Bearer",
        "expires_in": expires_in,
        "scope": "profile openid",
        "refresh_token": "rt",
        "id_token": id_token,
    }


def _login(client, expires_in=2592000):
    q = _start(client)
    with patch("line_login.api_client.httpx.post", return_value=MockResponse(body=_token_body(q["nonce"], expires_in))):
        r = client.get("/login/callback", params={"code": "auth-code", "state": q["state"]})
    assert r.status_code == 200
    return r


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("service") == "line_login"


def test_login_redirects_to_line(client):
    q = _start(client)
    assert q["response_type"] == "code"
    assert q["client_id"] == CHANNEL_ID
    assert q["scope"] == "profile openid"
    assert q["bot_prompt"] == "normal"
    assert "nonce" in q and "state" in q


def test_callback_success_returns_verified_claims(client):
    r = _login(client)
    body = r.json()
    assert body["access_token"] == "at"
    assert body["refresh_token"] == "rt"
    assert body["id_token"]["sub"] == "U42"
    assert body["id_token"]["aud"] == CHANNEL_ID
    assert body["id_token"]["iss"] == LINE_ISSUER


def test_callback_missing_code(client):
    _start(client)
    r = client.get("/login/callback", params={"error": "access_denied", "error_description": "The resource owner denied the request."})
    assert r.status_code == 400
    assert r.json() == {"error": "AuthorizationFailedError", "error_description": "Authorization failed."}


def test_callback_state_mismatch(client):
    _start(client)
    r = client.get("/login/callback", params={"code": "c", "state": "not-the-state"})
    assert r.status_code == 400
    assert r.json()["error"] == "StateMismatchError"


def test_callback_nonce_mismatch(client):
    q = _start(client)
    with patch("line_login.api_client.httpx.post", return_value=MockResponse(body=_token_body("other-nonce"))):
        r = client.get("/login/callback", params={"code": "c", "state": q["state"]})
    assert r.status_code == 400
    assert r.json()["error"] == "NonceMismatchError"
    assert "access_token" not in r.text


def test_callback_token_endpoint_rejects_code(client):
    q = _start(client)
    with patch("line_login.api_client.httpx.post", return_value=MockResponse(400, {"error": "invalid_grant"}, "Bad Request")):
        r = client.get("/login/callback", params={"code": "c", "state": q["state"]})
    assert r.status_code == 400
    assert r.json() == {"error": "ProviderError", "error_description": "Bad Request"}


def test_profile_requires_login(client):
    r = client.get("/profile")
    assert r.status_code == 401
    assert r.json()["error"] == "not_logged_in"


def test_profile_success(client):
    _login(client)
    profile = MockResponse(body={"userId": "U42", "displayName": "Brown", "pictureUrl": "https://example.com/p.png"})
    friendship = MockResponse(body={"friendFlag": True})
    with patch("line_login.api_client.httpx.get", side_effect=[profile, friendship]) as get:
        r = client.get("/profile")
    assert r.status_code == 200
    assert r.json()["display_name"] == "Brown"
    assert r.json()["friend_flag"] is True
    assert get.call_args.kwargs["headers"]["Authorization"] == "Bearer at"


def test_profile_refreshes_expired_token(client):
    _login(client, expires_in=0)
    refreshed = MockResponse(body={"access_token": "new-at", "token_type": "Bearer", "expires_in": 2592000})
    profile = MockResponse(body={"userId": "U42", "displayName": "Brown"})
    friendship = MockResponse(body={"friendFlag": False})
    with patch("line_login.api_client.httpx.post", return_value=refreshed) as post, patch(
        "line_login.api_client.httpx.get", side_effect=[profile, friendship]
    ) as get:
        r = client.get("/profile")
    assert r.status_code == 200
    assert post.call_args.kwargs["data"]["refresh_token"] == "rt"
    assert get.call_args.kwargs["headers"]["Authorization"] == "Bearer new-at"
    assert r.json()["friend_flag"] is False


def test_profile_refresh_failure_clears_tokens(client):
    _login(client, expires_in=0)
    with patch("line_login.api_client.httpx.post", return_value=MockResponse(400, {}, "Bad Request")):
        r = client.get("/profile")
    assert r.status_code == 401
    assert r.json()["error"] == "refresh_failed"
    assert client.get("/profile").json()["error"] == "not_logged_in"


def test_logout_revokes_and_clears(client):
    _login(client)
    with patch("line_login.api_client.httpx.post", return_value=MockResponse(body=None)) as post:
        r = client.get("/logout")
    assert r.status_code == 200
    assert post.call_args.kwargs["data"]["access_token"] == "at"
    assert client.get("/profile").status_code == 401
