"""
Session manager: the one object a process (the single "tab") builds to talk to the exam API.
Owns the HTTP client and all shared session state so tests can build isolated instances.
"""
import logging
from collections.abc import Callable
from typing import Any

import httpx

from exam_client.config import API_BASE_URL, EXPIRY_SKEW_SECONDS, LOGIN_REDIRECT_PATH, REQUEST_TIMEOUT
from exam_client.credential_store import CredentialStore
from exam_client.inspector import is_authenticated
from exam_client.loading import LoadingSignal
from exam_client.pipeline import RequestPipeline
from exam_client.renewal import RenewalCoordinator
from exam_client.teardown import Navigator, SessionTeardown

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(
        self,
        *,
        base_url: str = API_BASE_URL,
        store: CredentialStore | None = None,
        navigate: Callable[[str], None] | None = None,
        timeout: float = REQUEST_TIMEOUT,
        skew_seconds: int = EXPIRY_SKEW_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store if store is not None else CredentialStore()
        self.loading = LoadingSignal()
        self.navigator = Navigator()
        self.skew_seconds = skew_seconds
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )
        self.teardown = SessionTeardown(self.store, navigate or self.navigator, LOGIN_REDIRECT_PATH)
        self.coordinator = RenewalCoordinator(self.client, self.store, self.teardown, self.loading)
        self.pipeline = RequestPipeline(self.client, self.store, self.loading, self.coordinator, self.teardown)

    async def request(self, method: str, url: str, **kwargs: Any) -> Any:
        return await self.pipeline.request(method, url, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> Any:
        return await self.pipeline.get(url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Any:
        return await self.pipeline.post(url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> Any:
        return await self.pipeline.put(url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> Any:
        return await self.pipeline.patch(url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Any:
        return await self.pipeline.delete(url, **kwargs)

    def is_authenticated(self) -> bool:
        return is_authenticated(self.store, self.skew_seconds)

    def logout(self) -> None:
        self.teardown.logout()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "SessionManager":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
