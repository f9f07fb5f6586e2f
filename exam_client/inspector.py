"""
Access token inspection without signature verification.
The server is the only authority on validity; here we only read exp to decide when to renew.
"""
import json
import logging
import time

from jwt.utils import base64url_decode

from exam_client.config import EXPIRY_SKEW_SECONDS
from exam_client.credential_store import CredentialStore, StorageKey

logger = logging.getLogger(__name__)


def decode(token: str | None) -> dict | None:
    """
    Return the token's payload, or None if it cannot be read. Never raises.
    Only the payload segment is read; header and signature are left to the server.
    """
    if not token or not isinstance(token, str):
        return None
    segments = token.split(".")
    if len(segments) < 2:
        return None
    try:
        payload = json.loads(base64url_decode(segments[1]))
    except ValueError as e:
        logger.debug("Failed to decode token payload: %s", e)
        return None
    return payload if isinstance(payload, dict) else None


def is_expired(token: str | None, skew_seconds: int = EXPIRY_SKEW_SECONDS, now: float | None = None) -> bool:
    """
    True if the token is undecodable, has no numeric exp, or exp <= now + skew_seconds.
    The skew keeps us from presenting a token that expires while the request is in flight.
    """
    payload = decode(token)
    if payload is None:
        return True
    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return True
    if now is None:
        now = time.time()
    return exp <= now + skew_seconds


def is_authenticated(store: CredentialStore, skew_seconds: int = EXPIRY_SKEW_SECONDS) -> bool:
    """True iff an access token is stored and not (nearly) expired."""
    token = store.get(StorageKey.ACCESS_TOKEN)
    return token is not None and not is_expired(token, skew_seconds)


def token_claims(token: str | None) -> dict | None:
    """User view built from token claims (display fallback when /profile is unavailable)."""
    payload = decode(token)
    if payload is None:
        return None
    return {
        "id": payload.get("sub"),
        "email": payload.get("email"),
        "organizationId": payload.get("organizationId"),
        "roles": payload.get("roles") or [],
    }
