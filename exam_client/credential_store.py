"""
Credential store: access token, refresh token and cached session metadata.
Pure get/set/clear; no validation. CredentialStore keeps values in memory,
SqlCredentialStore persists them in SQLite so a restarted process resumes the session.
"""
import json
import logging
from dataclasses import asdict, dataclass
from enum import Enum

from sqlalchemy import String, Text, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from exam_client.endpoints import UserClass

logger = logging.getLogger(__name__)


class StorageKey(str, Enum):
    ACCESS_TOKEN = "quiz_auth_token"
    REFRESH_TOKEN = "quiz_refresh_token"
    USER_DATA = "quiz_user_data"
    ORGANIZATION = "quiz_organization"


# Cleared together on logout and on terminal renewal failure
SESSION_KEYS = (
    StorageKey.ACCESS_TOKEN,
    StorageKey.REFRESH_TOKEN,
    StorageKey.USER_DATA,
    StorageKey.ORGANIZATION,
)


@dataclass(frozen=True)
class SessionMetadata:
    """Cached user info. Only used to pick the renewal endpoint, never for authorization."""

    user_class: UserClass
    user_id: str | None = None
    email: str | None = None
    organization_id: int | None = None

    @property
    def is_examinee(self) -> bool:
        return self.user_class is UserClass.EXAMINEE

    def to_json(self) -> str:
        data = asdict(self)
        data["user_class"] = self.user_class.value
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "SessionMetadata | None":
        try:
            data = json.loads(raw)
            return cls(
                user_class=UserClass(data["user_class"]),
                user_id=data.get("user_id"),
                email=data.get("email"),
                organization_id=data.get("organization_id"),
            )
        except (ValueError, KeyError, TypeError):
            return None


def _key(key: StorageKey | str) -> str:
    return key.value if isinstance(key, StorageKey) else str(key)


class CredentialStore:
    """In-memory store; one instance per session. Values are str, so readers always get copies."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: StorageKey | str) -> str | None:
        return self._values.get(_key(key))

    def set(self, key: StorageKey | str, value: str) -> None:
        self._values[_key(key)] = value

    def clear(self, key: StorageKey | str) -> None:
        self._values.pop(_key(key), None)

    def clear_all(self) -> None:
        for key in SESSION_KEYS:
            self.clear(key)

    def get_metadata(self) -> SessionMetadata | None:
        raw = self.get(StorageKey.USER_DATA)
        if not raw:
            return None
        return SessionMetadata.from_json(raw)

    def set_metadata(self, metadata: SessionMetadata) -> None:
        self.set(StorageKey.USER_DATA, metadata.to_json())


class Base(DeclarativeBase):
    pass


class StoredValue(Base):
    __tablename__ = "session_values"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


class SqlCredentialStore(CredentialStore):
    """Durable store over a SQLAlchemy engine (SQLite by default)."""

    def __init__(self, database_url: str) -> None:
        # In-memory SQLite needs StaticPool so every connection sees the same DB
        if database_url.startswith("sqlite:///:memory:"):
            self._engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            connect_args = {"check_same_thread": False} if "sqlite" in database_url else {}
            self._engine = create_engine(database_url, connect_args=connect_args)
        self._sessions = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        Base.metadata.create_all(bind=self._engine)

    def get(self, key: StorageKey | str) -> str | None:
        with self._sessions() as db:
            row = db.get(StoredValue, _key(key))
            return row.value if row is not None else None

    def set(self, key: StorageKey | str, value: str) -> None:
        with self._sessions() as db:
            db.merge(StoredValue(key=_key(key), value=value))
            db.commit()

    def clear(self, key: StorageKey | str) -> None:
        with self._sessions() as db:
            db.query(StoredValue).filter(StoredValue.key == _key(key)).delete()
            db.commit()

    def clear_all(self) -> None:
        keys = [k.value for k in SESSION_KEYS]
        with self._sessions() as db:
            db.query(StoredValue).filter(StoredValue.key.in_(keys)).delete(synchronize_session=False)
            db.commit()
        logger.debug("Cleared %d session keys", len(keys))

    def dispose(self) -> None:
        self._engine.dispose()
