"""
Login, logout and profile calls for the exam portal.
Each helper returns {"success": True, "data": ...} or {"success": False, "message": ...};
callers never see transport errors.
"""
import logging
from typing import Any

from exam_client.credential_store import SessionMetadata, StorageKey
from exam_client.endpoints import LOGIN_ENDPOINTS, ORGANIZATIONS_RESOLVE, PROFILE, UserClass
from exam_client.errors import ApiError, error_message
from exam_client.inspector import decode
from exam_client.session import SessionManager

logger = logging.getLogger(__name__)


def is_success(body: Any) -> bool:
    """The portal wraps payloads as {data, result: {responseCode}, errorFields}."""
    if not isinstance(body, dict):
        return False
    result = body.get("result")
    if isinstance(result, dict) and result.get("responseCode") == 200:
        return True
    return body.get("success") is True


async def _login(session: SessionManager, credentials: dict, user_class: UserClass) -> dict:
    try:
        body = await session.post(LOGIN_ENDPOINTS[user_class], json=credentials)
    except ApiError as e:
        logger.info("%s login failed: %s", user_class.value, e.message)
        return {"success": False, "message": e.message or "Login failed"}

    data = body.get("data") if isinstance(body, dict) else None
    if not is_success(body) or not isinstance(data, dict) or not data.get("accessToken"):
        return {"success": False, "message": error_message(body, "Login failed")}

    store = session.store
    store.clear_all()
    store.set(StorageKey.ACCESS_TOKEN, data["accessToken"])
    if data.get("refreshToken"):
        store.set(StorageKey.REFRESH_TOKEN, data["refreshToken"])

    claims = decode(data["accessToken"]) or {}
    organization_id = credentials.get("organizationId", claims.get("organizationId"))
    store.set_metadata(
        SessionMetadata(
            user_class=user_class,
            user_id=str(claims["sub"]) if claims.get("sub") is not None else None,
            email=claims.get("email") or credentials.get("email"),
            organization_id=organization_id,
        )
    )
    if user_class is UserClass.EXAMINEE and organization_id is not None:
        store.set(StorageKey.ORGANIZATION, str(organization_id))
    logger.info("%s login succeeded", user_class.value)
    return {"success": True, "data": data}


async def login(session: SessionManager, credentials: dict) -> dict:
    """Staff login (admin portal). credentials: email, password."""
    return await _login(session, credentials, UserClass.STAFF)


async def login_examinee(session: SessionManager, credentials: dict) -> dict:
    """Examinee login (student portal). credentials: organizationId, email, password."""
    return await _login(session, credentials, UserClass.EXAMINEE)


def logout(session: SessionManager) -> None:
    session.logout()


async def get_profile(session: SessionManager) -> dict:
    try:
        body = await session.get(PROFILE)
    except ApiError as e:
        return e.to_result()
    if is_success(body):
        return {"success": True, "data": body.get("data")}
    return {"success": False, "message": error_message(body, "Failed to get profile")}


async def resolve_organization(session: SessionManager, origin: str) -> dict:
    """Look up the organization serving a domain (e.g. academy.example.com)."""
    try:
        body = await session.get(ORGANIZATIONS_RESOLVE, params={"origin": origin})
    except ApiError as e:
        return e.to_result()
    if is_success(body):
        return {"success": True, "data": body.get("data")}
    return {"success": False, "message": error_message(body, "Organization not found")}
