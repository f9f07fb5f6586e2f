"""
Access token (RS256 JWT) issuance and verification; opaque refresh tokens with rotation.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from exam_api.config import ACCESS_TOKEN_EXPIRES, ISSUER, REFRESH_TOKEN_EXPIRES
from exam_api.keys import KID, get_public_key, get_signing_key
from exam_api.models import RefreshToken, User
from exam_api.seed import EXAMINEE

logger = logging.getLogger(__name__)

_ROLES = {
    "staff": [{"id": 2, "name": "Organization Admin"}],
    EXAMINEE: [{"id": 3, "name": "Examinee"}],
}


def issue_access_token(user: User, lifetime: int = ACCESS_TOKEN_EXPIRES) -> str:
    """Signed access token. A negative lifetime yields an already-expired token (tests)."""
    now = datetime.now(timezone.utc)
    payload = {
        "iss": ISSUER,
        "sub": str(user.id),
        "email": user.email,
        "organizationId": user.organization_id,
        "roles": _ROLES.get(user.user_class, []),
        "userClass": user.user_class,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=lifetime)).timestamp()),
    }
    return jwt.encode(payload, get_signing_key(), algorithm="RS256", headers={"kid": KID, "typ": "JWT"})


def issue_refresh_token(db: Session, user: User) -> str:
    value = secrets.token_urlsafe(48)
    db.add(
        RefreshToken(
            token=value,
            user_id=user.id,
            user_class=user.user_class,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=REFRESH_TOKEN_EXPIRES),
        )
    )
    db.commit()
    return value


def rotate_refresh_token(db: Session, value: str | None, user_class: str) -> tuple[User, str] | None:
    """Revoke the presented refresh token and issue a new one. None if unknown, revoked, expired or wrong class."""
    if not value:
        return None
    rt = db.query(RefreshToken).filter(RefreshToken.token == value).first()
    if rt is None or rt.revoked or rt.user_class != user_class:
        return None
    if rt.expires_at.replace(tzinfo=timezone.utc) < datetime.now(timezone.utc):
        return None
    rt.revoked = True
    db.commit()
    user = rt.user
    logger.info("Refresh token rotated for %s user sub=%s", user_class, user.id)
    return user, issue_refresh_token(db, user)


def verify_access_token(token: str) -> dict:
    """Verify signature, issuer and expiry. Raises 401 on any failure."""
    try:
        return jwt.decode(
            token,
            get_public_key(),
            algorithms=["RS256"],
            issuer=ISSUER,
            options={"verify_exp": True, "verify_iss": True},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug("JWT verification failed: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


security = HTTPBearer(auto_error=False)


def get_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict:
    """Dependency: valid Bearer token -> decoded claims."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization header missing")
    return verify_access_token(credentials.credentials)
