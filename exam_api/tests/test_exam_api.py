"""Tests for the development exam API: login, refresh rotation, profile, organization resolve."""
import jwt
import pytest
from fastapi.testclient import TestClient

from exam_api.main import app
from exam_api.tokens import issue_access_token

client = TestClient(app)


def _login(email="staff@academy.test", password="secret"):
    return client.post("/api/v1/login", json={"email": email, "password": password})


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("service") == "exam_api"


def test_staff_login_returns_envelope_with_tokens(seeded):
    r = _login()
    assert r.status_code == 200
    body = r.json()
    assert body["result"]["responseCode"] == 200
    assert body["data"]["accessToken"]
    assert body["data"]["refreshToken"]
    claims = jwt.decode(body["data"]["accessToken"], options={"verify_signature": False})
    assert claims["sub"] == str(seeded["staff"].id)
    assert claims["userClass"] == "staff"
    assert claims["exp"] > claims["iat"]


def test_staff_login_wrong_password_is_401(seeded):
    r = _login(password="nope")
    assert r.status_code == 401
    body = r.json()
    assert body["errorFields"][0]["message"] == "Invalid email or password"
    assert body["result"]["responseCode"] == 401


def test_examinee_cannot_use_staff_login(seeded):
    assert _login(email="kid@academy.test").status_code == 401


def test_examinee_login_requires_matching_organization(seeded):
    org_id = seeded["org"].id
    ok = client.post(
        "/api/v1/login/examinee",
        json={"organizationId": org_id, "email": "kid@academy.test", "password": "secret"},
    )
    assert ok.status_code == 200
    wrong = client.post(
        "/api/v1/login/examinee",
        json={"organizationId": org_id + 100, "email": "kid@academy.test", "password": "secret"},
    )
    assert wrong.status_code == 401


def test_refresh_rotates_token(seeded):
    refresh_token = _login().json()["data"]["refreshToken"]
    r = client.post("/api/v1/login/refresh", json={"refreshToken": refresh_token})
    assert r.status_code == 200
    new_refresh = r.json()["data"]["refreshToken"]
    assert new_refresh != refresh_token
    # Old token is revoked after rotation
    again = client.post("/api/v1/login/refresh", json={"refreshToken": refresh_token})
    assert again.status_code == 401


def test_refresh_rejects_wrong_class(seeded):
    refresh_token = _login().json()["data"]["refreshToken"]
    r = client.post("/api/v1/login/examinee/refresh", json={"refreshToken": refresh_token})
    assert r.status_code == 401


@pytest.mark.parametrize("body", [{}, {"refreshToken": "unknown"}])
def test_refresh_rejects_missing_or_unknown(seeded, body):
    assert client.post("/api/v1/login/refresh", json=body).status_code == 401


def test_profile_requires_valid_token(seeded):
    assert client.get("/api/v1/profile").status_code == 401
    assert client.get("/api/v1/profile", headers={"Authorization": "Bearer junk"}).status_code == 401
    expired = issue_access_token(seeded["staff"], lifetime=-60)
    r = client.get("/api/v1/profile", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401
    assert r.json()["result"]["responseDescription"] == "Token expired"


def test_profile_returns_user(seeded):
    token = _login().json()["data"]["accessToken"]
    r = client.get("/api/v1/profile", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["email"] == "staff@academy.test"
    assert data["isExaminee"] is False


def test_resolve_organization(seeded):
    r = client.get("/api/v1/organizations/resolve", params={"origin": "academy.test"})
    assert r.status_code == 200
    assert r.json()["data"]["name"] == "Test Academy"
    assert client.get("/api/v1/organizations/resolve", params={"origin": "nope.test"}).status_code == 404
