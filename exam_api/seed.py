"""
Seed organization and users from environment. No hardcoded credentials.
Set EXAM_API_SEED_STAFF_EMAIL + EXAM_API_SEED_STAFF_PASSWORD and/or
EXAM_API_SEED_EXAMINEE_EMAIL + EXAM_API_SEED_EXAMINEE_PASSWORD.
"""
import logging
import os

import bcrypt
from sqlalchemy.orm import Session

from exam_api.models import Organization, User

logger = logging.getLogger(__name__)

STAFF = "staff"
EXAMINEE = "examinee"


def hash_password(password: str) -> str:
    # Bcrypt has a 72-byte limit
    raw = password.encode("utf-8")[:72]
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8")[:72], hashed.encode("utf-8"))


def ensure_organization(db: Session, origin: str, name: str) -> Organization:
    org = db.query(Organization).filter(Organization.origin == origin).first()
    if org is None:
        org = Organization(origin=origin, name=name)
        db.add(org)
        db.commit()
        logger.info("Seeded organization: %s", origin)
    return org


def ensure_user(
    db: Session,
    email: str,
    password: str,
    user_class: str,
    organization_id: int | None = None,
) -> User:
    user = (
        db.query(User)
        .filter(User.email == email, User.user_class == user_class)
        .first()
    )
    if user is None:
        user = User(
            email=email,
            password_hash=hash_password(password),
            user_class=user_class,
            organization_id=organization_id,
        )
        db.add(user)
        db.commit()
        logger.info("Seeded %s user: %s", user_class, email)
    return user


def seed_from_env(db: Session) -> None:
    org = ensure_organization(
        db,
        origin=os.environ.get("EXAM_API_SEED_ORG_ORIGIN", "localhost"),
        name=os.environ.get("EXAM_API_SEED_ORG_NAME", "Development Academy"),
    )

    staff_email = os.environ.get("EXAM_API_SEED_STAFF_EMAIL")
    staff_password = os.environ.get("EXAM_API_SEED_STAFF_PASSWORD")
    if staff_email and staff_password:
        ensure_user(db, staff_email, staff_password, STAFF, org.id)

    examinee_email = os.environ.get("EXAM_API_SEED_EXAMINEE_EMAIL")
    examinee_password = os.environ.get("EXAM_API_SEED_EXAMINEE_PASSWORD")
    if examinee_email and examinee_password:
        ensure_user(db, examinee_email, examinee_password, EXAMINEE, org.id)
