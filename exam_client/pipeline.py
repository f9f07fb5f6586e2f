"""
Request pipeline: every API call goes through here.
Attaches the bearer token, drives the loading signal, and on 401 hands over to the
renewal coordinator before retrying the original request exactly once.
"""
import logging
from typing import Any
from urllib.parse import urlsplit

import httpx

from exam_client.credential_store import CredentialStore, StorageKey
from exam_client.endpoints import is_login_path, is_renewal_path
from exam_client.errors import (
    ApiError,
    AuthenticationError,
    ErrorKind,
    RenewalError,
    classify_response,
    classify_transport_error,
    response_body,
)
from exam_client.loading import LoadingSignal
from exam_client.renewal import RenewalCoordinator
from exam_client.teardown import SessionTeardown

logger = logging.getLogger(__name__)


class _RetryableAuth(Exception):
    """A 401 eligible for renewal, carrying the token the server refused."""

    def __init__(self, error: ApiError, token: str | None) -> None:
        super().__init__(error.message)
        self.error = error
        self.token = token


class RequestPipeline:
    def __init__(
        self,
        client: httpx.AsyncClient,
        store: CredentialStore,
        loading: LoadingSignal,
        coordinator: RenewalCoordinator,
        teardown: SessionTeardown,
    ) -> None:
        self._client = client
        self._store = store
        self._loading = loading
        self._coordinator = coordinator
        self._teardown = teardown
        self._base_path = urlsplit(str(client.base_url)).path.rstrip("/")

    async def request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and return its decoded body. Raises ApiError on any failure."""
        token = self._store.get(StorageKey.ACCESS_TOKEN)
        try:
            return await self._send(method, url, token, kwargs)
        except _RetryableAuth as e:
            rejected = e.token
        # First 401 on a normal endpoint: renew (or wait for the renewal in flight), then retry once
        token = await self._coordinator.renew(rejected)
        try:
            return await self._send(method, url, token, kwargs)
        except _RetryableAuth as e:
            logger.warning("%s %s rejected again after renewal", method, url)
            raise AuthenticationError(e.error.message, payload=e.error.payload) from None

    async def get(self, url: str, **kwargs: Any) -> Any:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Any:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> Any:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> Any:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", url, **kwargs)

    async def _send(self, method: str, url: str, token: str | None, kwargs: dict) -> Any:
        headers = dict(kwargs.get("headers") or {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        options = {k: v for k, v in kwargs.items() if k != "headers"}

        with self._loading.track():
            try:
                response = await self._client.request(method, url, headers=headers, **options)
            except httpx.HTTPError as e:
                raise classify_transport_error(e) from e

        if response.is_success:
            return response_body(response)

        error = classify_response(response)
        if error.kind is not ErrorKind.RETRYABLE_AUTH:
            raise error
        # Exemptions are decided on the URL httpx actually requested ("login" and "/login" resolve alike)
        sent = str(response.request.url)
        if is_renewal_path(sent, self._base_path):
            # The refresh token itself was refused: nothing left to renew with
            self._teardown.logout()
            raise RenewalError(error.message, payload=error.payload)
        if is_login_path(sent, self._base_path):
            raise AuthenticationError(error.message, payload=error.payload)
        raise _RetryableAuth(error, token)
