"""Tests for login/logout/profile helpers and their {success, data|message} results."""
import asyncio
import json

import httpx
import jwt

from exam_client import auth_api
from exam_client.credential_store import StorageKey
from exam_client.endpoints import UserClass
from exam_client.session import SessionManager

SECRET = "exam-client-test-secret-0123456789abcdef"
ACCESS = jwt.encode({"sub": "11", "email": "t@x.org", "organizationId": 4, "exp": 2_000_000_000}, SECRET, algorithm="HS256")


def _ok(data):
    return httpx.Response(200, json={"data": data, "result": {"responseCode": 200}, "errorFields": None})


def _portal(request: httpx.Request) -> httpx.Response:
    path = request.url.path.removeprefix("/api/v1")
    if path in ("/login", "/login/examinee"):
        body = json.loads(request.content)
        if body.get("password") != "secret":
            return httpx.Response(
                401,
                json={"data": None, "result": {"responseCode": 401}, "errorFields": [{"message": "Invalid email or password"}]},
            )
        return _ok({"accessToken": ACCESS, "refreshToken": "R1"})
    if path == "/profile":
        if request.headers.get("Authorization") != f"Bearer {ACCESS}":
            return httpx.Response(401)
        return _ok({"id": 11, "email": "t@x.org"})
    if path == "/organizations/resolve":
        if request.url.params.get("origin") == "academy.example.com":
            return _ok({"id": 4, "name": "Academy"})
        return httpx.Response(404, json={"result": {"responseCode": 404, "responseDescription": "Organization not found"}})
    return httpx.Response(404)


def _session():
    return SessionManager(base_url="http://api.test/api/v1", transport=httpx.MockTransport(_portal))


def test_is_success():
    assert auth_api.is_success({"result": {"responseCode": 200}}) is True
    assert auth_api.is_success({"success": True}) is True
    assert auth_api.is_success({"result": {"responseCode": 400}}) is False
    assert auth_api.is_success(None) is False


def test_staff_login_stores_tokens_and_metadata():
    async def run():
        session = _session()
        result = await auth_api.login(session, {"email": "t@x.org", "password": "secret"})
        return session, result

    session, result = asyncio.run(run())
    assert result["success"] is True
    assert result["data"]["accessToken"] == ACCESS
    assert session.store.get(StorageKey.ACCESS_TOKEN) == ACCESS
    assert session.store.get(StorageKey.REFRESH_TOKEN) == "R1"
    meta = session.store.get_metadata()
    assert meta.user_class is UserClass.STAFF
    assert meta.user_id == "11"
    assert session.store.get(StorageKey.ORGANIZATION) is None


def test_examinee_login_records_class_and_organization():
    async def run():
        session = _session()
        result = await auth_api.login_examinee(
            session, {"organizationId": 4, "email": "t@x.org", "password": "secret"}
        )
        return session, result

    session, result = asyncio.run(run())
    assert result["success"] is True
    meta = session.store.get_metadata()
    assert meta.is_examinee is True
    assert meta.organization_id == 4
    assert session.store.get(StorageKey.ORGANIZATION) == "4"


def test_failed_login_returns_message_and_keeps_user_on_login():
    async def run():
        session = _session()
        result = await auth_api.login(session, {"email": "t@x.org", "password": "wrong"})
        return session, result

    session, result = asyncio.run(run())
    assert result == {"success": False, "message": "Invalid email or password"}
    assert session.store.get(StorageKey.ACCESS_TOKEN) is None
    assert session.navigator.history == []


def test_get_profile_after_login():
    async def run():
        session = _session()
        await auth_api.login(session, {"email": "t@x.org", "password": "secret"})
        return await auth_api.get_profile(session)

    assert asyncio.run(run()) == {"success": True, "data": {"id": 11, "email": "t@x.org"}}


def test_get_profile_without_session_ends_on_login_page():
    async def run():
        session = _session()
        result = await auth_api.get_profile(session)
        return session, result

    session, result = asyncio.run(run())
    assert result["success"] is False
    assert result["status"] == 401
    assert session.navigator.location == "/login"


def test_resolve_organization():
    async def run():
        session = _session()
        found = await auth_api.resolve_organization(session, "academy.example.com")
        missing = await auth_api.resolve_organization(session, "nowhere.example.com")
        return found, missing

    found, missing = asyncio.run(run())
    assert found == {"success": True, "data": {"id": 4, "name": "Academy"}}
    assert missing["success"] is False
    assert missing["message"] == "Organization not found"


def test_logout_clears_session_and_navigates():
    async def run():
        session = _session()
        await auth_api.login(session, {"email": "t@x.org", "password": "secret"})
        auth_api.logout(session)
        auth_api.logout(session)
        return session

    session = asyncio.run(run())
    assert session.store.get(StorageKey.ACCESS_TOKEN) is None
    assert session.store.get_metadata() is None
    assert session.navigator.history == ["/login", "/login"]
