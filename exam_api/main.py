"""
Development exam API: staff and examinee login, refresh token renewal, profile, organization resolve.
Responses use the portal envelope {data, result: {responseCode, responseDescription}, errorFields}.
Port 8080 to match the client's default base URL.
"""
import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from exam_api.config import ACCESS_TOKEN_EXPIRES, API_PREFIX
from exam_api.database import SessionLocal, get_db, init_db
from exam_api.keys import get_signing_key
from exam_api.models import Organization, User
from exam_api.seed import EXAMINEE, STAFF, seed_from_env, verify_password
from exam_api.tokens import get_claims, issue_access_token, issue_refresh_token, rotate_refresh_token

logger = logging.getLogger(__name__)


def envelope(data, code: int = 200, description: str = "Success", error_fields: list | None = None) -> dict:
    return {
        "data": data,
        "result": {"responseCode": code, "responseDescription": description},
        "errorFields": error_fields,
    }


class StaffLogin(BaseModel):
    email: str
    password: str


class ExamineeLogin(BaseModel):
    organizationId: int
    email: str
    password: str


class RefreshRequest(BaseModel):
    refreshToken: str | None = None


router = APIRouter(prefix=API_PREFIX)


def _token_pair(db: Session, user: User) -> dict:
    return {
        "accessToken": issue_access_token(user),
        "refreshToken": issue_refresh_token(db, user),
        "expiresIn": ACCESS_TOKEN_EXPIRES,
    }


def _invalid_credentials() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")


@router.post("/login")
def login(body: StaffLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email, User.user_class == STAFF).first()
    if user is None or not verify_password(body.password, user.password_hash):
        logger.info("Staff login failed for %s", body.email)
        raise _invalid_credentials()
    return envelope(_token_pair(db, user))


@router.post("/login/examinee")
def login_examinee(body: ExamineeLogin, db: Session = Depends(get_db)):
    user = (
        db.query(User)
        .filter(
            User.email == body.email,
            User.user_class == EXAMINEE,
            User.organization_id == body.organizationId,
        )
        .first()
    )
    if user is None or not verify_password(body.password, user.password_hash):
        logger.info("Examinee login failed for %s (org %s)", body.email, body.organizationId)
        raise _invalid_credentials()
    return envelope(_token_pair(db, user))


def _refresh(body: RefreshRequest, user_class: str, db: Session) -> dict:
    rotated = rotate_refresh_token(db, body.refreshToken, user_class)
    if rotated is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired refresh token")
    user, new_refresh = rotated
    return envelope(
        {
            "accessToken": issue_access_token(user),
            "refreshToken": new_refresh,
            "expiresIn": ACCESS_TOKEN_EXPIRES,
        }
    )


@router.post("/login/refresh")
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    return _refresh(body, STAFF, db)


@router.post("/login/examinee/refresh")
def refresh_examinee(body: RefreshRequest, db: Session = Depends(get_db)):
    return _refresh(body, EXAMINEE, db)


@router.get("/profile")
def profile(claims: Annotated[dict, Depends(get_claims)], db: Session = Depends(get_db)):
    user = db.get(User, int(claims["sub"]))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return envelope(
        {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "organizationId": user.organization_id,
            "roles": claims.get("roles", []),
            "isExaminee": user.user_class == EXAMINEE,
        }
    )


@router.get("/organizations/resolve")
def resolve_organization(origin: str, db: Session = Depends(get_db)):
    org = db.query(Organization).filter(Organization.origin == origin).first()
    if org is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return envelope({"id": org.id, "name": org.name, "origin": org.origin})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, load signing key, seed organization/users from env on startup."""
    init_db()
    get_signing_key()
    db = SessionLocal()
    try:
        seed_from_env(db)
    finally:
        db.close()
    yield


app = FastAPI(title="Exam API (development)", version="0.1.0", lifespan=lifespan)
app.include_router(router, tags=["exam"])


@app.exception_handler(HTTPException)
async def envelope_http_exception(request: Request, exc: HTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(None, exc.status_code, message, [{"message": message}]),
        headers=getattr(exc, "headers", None),
    )


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "exam_api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "exam_api.main:app",
        host="127.0.0.1",
        port=8080,
        reload=True,
    )
