"""
Pytest configuration for exam_api. In-memory SQLite and a throwaway signing key, so tests touch no files.
"""
import os

os.environ["EXAM_API_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["EXAM_API_SIGNING_KEY_PATH"] = ""
for name in (
    "EXAM_API_SEED_STAFF_EMAIL",
    "EXAM_API_SEED_STAFF_PASSWORD",
    "EXAM_API_SEED_EXAMINEE_EMAIL",
    "EXAM_API_SEED_EXAMINEE_PASSWORD",
):
    os.environ.pop(name, None)

import pytest  # noqa: E402


@pytest.fixture
def db():
    from exam_api.database import SessionLocal, init_db

    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db):
    """One organization with a staff user and an examinee (password 'secret' for both)."""
    from exam_api.seed import EXAMINEE, STAFF, ensure_organization, ensure_user

    org = ensure_organization(db, origin="academy.test", name="Test Academy")
    staff = ensure_user(db, "staff@academy.test", "secret", STAFF, org.id)
    examinee = ensure_user(db, "kid@academy.test", "secret", EXAMINEE, org.id)
    return {"org": org, "staff": staff, "examinee": examinee}
