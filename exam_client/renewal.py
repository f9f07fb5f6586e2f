"""
Single-flight credential renewal.

At most one renewal exchange is in flight. Callers whose requests fail with 401 while an
exchange is outstanding are parked in arrival order and released with its outcome: the new
access token on success, the renewal error on failure (after the session has been torn down).

All transitions happen synchronously between awaits on one event loop, so the `renewing`
flag needs no lock. Porting this to threads would need a mutex around the Idle -> Renewing check.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

import httpx

from exam_client.credential_store import CredentialStore, StorageKey
from exam_client.endpoints import renewal_endpoint
from exam_client.errors import AuthenticationError, RenewalError, classify_transport_error, error_message, response_body
from exam_client.loading import LoadingSignal
from exam_client.teardown import SessionTeardown

logger = logging.getLogger(__name__)


class WaiterState(Enum):
    WAITING = "waiting"
    RESOLVED = "resolved"
    REJECTED = "rejected"


@dataclass
class PendingCaller:
    """A caller parked behind the in-flight exchange: Waiting, Resolved(token) or Rejected(error)."""

    future: asyncio.Future
    state: WaiterState = WaiterState.WAITING
    token: str | None = None
    error: BaseException | None = field(default=None, repr=False)

    def resolve(self, token: str) -> None:
        if self.state is not WaiterState.WAITING:
            return
        self.state = WaiterState.RESOLVED
        self.token = token
        if not self.future.done():
            self.future.set_result(token)

    def reject(self, error: BaseException) -> None:
        if self.state is not WaiterState.WAITING:
            return
        self.state = WaiterState.REJECTED
        self.error = error
        if not self.future.done():
            self.future.set_exception(error)


class RenewalCoordinator:
    def __init__(
        self,
        client: httpx.AsyncClient,
        store: CredentialStore,
        teardown: SessionTeardown,
        loading: LoadingSignal | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._teardown = teardown
        self._loading = loading or LoadingSignal()
        self._renewing = False
        self._queue: list[PendingCaller] = []
        self.exchange_count = 0

    @property
    def renewing(self) -> bool:
        return self._renewing

    @property
    def pending(self) -> int:
        return len(self._queue)

    async def renew(self, rejected_token: str | None = None) -> str:
        """
        Return a usable access token after `rejected_token` was refused by the server.
        Joins the outstanding exchange if there is one; otherwise starts it.
        Raises AuthenticationError (no refresh token) or RenewalError; the session is torn down first.
        """
        if self._renewing:
            waiter = PendingCaller(future=asyncio.get_running_loop().create_future())
            self._queue.append(waiter)
            logger.debug("Renewal in progress; queued caller (%d waiting)", len(self._queue))
            return await waiter.future

        current = self._store.get(StorageKey.ACCESS_TOKEN)
        if current and current != rejected_token:
            # An exchange finished after this caller's request went out
            logger.debug("Access token already renewed; reusing it")
            return current

        refresh_token = self._store.get(StorageKey.REFRESH_TOKEN)
        if not refresh_token:
            logger.warning("401 with no refresh token stored; ending session")
            self._teardown.logout()
            raise AuthenticationError("Session expired. Please log in again.")

        self._renewing = True
        try:
            access_token = await self._exchange(refresh_token)
        except RenewalError as e:
            self._settle(error=e)
            self._teardown.logout()
            raise
        except asyncio.CancelledError:
            self._settle(error=RenewalError("Credential renewal was cancelled"))
            raise
        except Exception as e:
            logger.exception("Renewal exchange failed unexpectedly")
            error = RenewalError(f"Token renewal failed: {e}")
            self._settle(error=error)
            self._teardown.logout()
            raise error from e
        self._settle(token=access_token)
        return access_token

    async def _exchange(self, refresh_token: str) -> str:
        """POST the refresh token to the class-specific endpoint; store and return the new access token."""
        metadata = self._store.get_metadata()
        endpoint = renewal_endpoint(metadata.user_class if metadata else None)
        self.exchange_count += 1
        logger.info("Renewing access token via %s", endpoint)

        with self._loading.track():
            try:
                response = await self._client.post(endpoint, json={"refreshToken": refresh_token})
            except httpx.HTTPError as e:
                cause = classify_transport_error(e)
                raise RenewalError(f"Token renewal failed: {cause.message}") from e

        body = response_body(response)
        if not response.is_success:
            logger.warning("Renewal rejected with status %s", response.status_code)
            raise RenewalError(
                error_message(body, "Session expired. Please log in again."),
                status_code=response.status_code,
                payload=body,
            )

        data = body.get("data", body) if isinstance(body, dict) else None
        access_token = data.get("accessToken") if isinstance(data, dict) else None
        if not access_token:
            raise RenewalError("Token renewal response carried no access token", status_code=response.status_code)

        self._store.set(StorageKey.ACCESS_TOKEN, access_token)
        if data.get("refreshToken"):
            self._store.set(StorageKey.REFRESH_TOKEN, data["refreshToken"])
        logger.info("Access token renewed")
        return access_token

    def _settle(self, *, token: str | None = None, error: BaseException | None = None) -> None:
        """Release every queued caller in arrival order and return to Idle."""
        queue, self._queue = self._queue, []
        self._renewing = False
        for waiter in queue:
            if error is not None:
                waiter.reject(error)
            else:
                waiter.resolve(token)
        if queue:
            logger.debug("Released %d queued callers (%s)", len(queue), "failed" if error else "renewed")
