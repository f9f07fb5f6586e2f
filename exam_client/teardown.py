"""
Session teardown: forget every stored credential and force navigation to the login page.
"""
import logging
from collections.abc import Callable

from exam_client.config import LOGIN_REDIRECT_PATH
from exam_client.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class Navigator:
    """Records forced navigations. The portal turns `location` into a redirect."""

    def __init__(self) -> None:
        self.location: str | None = None
        self.history: list[str] = []

    def __call__(self, path: str) -> None:
        self.location = path
        self.history.append(path)

    def consume(self) -> str | None:
        """Return and reset the pending forced location."""
        location, self.location = self.location, None
        return location


class SessionTeardown:
    def __init__(
        self,
        store: CredentialStore,
        navigate: Callable[[str], None],
        login_path: str = LOGIN_REDIRECT_PATH,
    ) -> None:
        self._store = store
        self._navigate = navigate
        self._login_path = login_path

    def logout(self) -> None:
        """Clear all session keys and navigate to login. Safe to call when already logged out."""
        self._store.clear_all()
        logger.info("Session cleared; navigating to %s", self._login_path)
        self._navigate(self._login_path)
