"""Service routing for the four backend services.

Maps a logical service name to its configured base URL, attaches the current
bearer token to authorized calls and translates every transport failure or
non-2xx response into the ChlorideError taxonomy. No automatic retries:
every call here is user-triggered and may not be idempotent.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from types import TracebackType
from typing import Any

import httpx

from chloride.core.constants import Settings, get_settings
from chloride.core.credential_store import CredentialStore
from chloride.models.error_models import (
    ChlorideError,
    MalformedResponse,
    RequestRejected,
    ServiceUnavailable,
    SessionChanged,
    Unauthorized,
    extract_server_message,
)
from chloride.models.schemas.auth import Session
from chloride.utils.http_logger import create_logging_client
from chloride.utils.logger import logger

MultipartFiles = Sequence[tuple[str, tuple[str, bytes, str]]]


class Service(str, Enum):
    """Logical backend services."""

    AUTH = "auth"
    ADMIN = "admin"
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True, slots=True)
class ParsedResponse:
    """Successful (2xx) response with its JSON body decoded (None when empty)."""

    status_code: int
    data: Any
    headers: httpx.Headers


class ServiceRouter:
    """Dispatches calls to backend services with the session's bearer token."""

    def __init__(
        self,
        store: CredentialStore,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize router.

        Args:
            store: Credential store read for the bearer token (never written here)
            settings: Service URLs and HTTP options (defaults to get_settings())
            client: Pre-built httpx client; one with logging hooks is created otherwise
        """
        self.settings = settings or get_settings()
        self.store = store
        self._base_urls = {Service(name): url for name, url in self.settings.service_urls().items()}
        self._owns_client = client is None
        self._client = client or create_logging_client(
            enabled=self.settings.http_request_logging,
            timeout=httpx.Timeout(self.settings.http_timeout),
        )
        self._token_rejected_listeners: list[Callable[[], None]] = []

    def base_url(self, service: Service) -> str:
        return self._base_urls[Service(service)]

    def url_for(self, service: Service, path: str) -> str:
        return f"{self.base_url(service)}/{path.lstrip('/')}"

    def add_token_rejected_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback fired when a service rejects the current token (401)."""
        self._token_rejected_listeners.append(listener)

    async def send(
        self,
        service: Service,
        path: str,
        method: str = "GET",
        *,
        json: Any = None,
        files: MultipartFiles | None = None,
        authorized: bool = False,
        session: Session | None = None,
        follow_redirects: bool = True,
    ) -> httpx.Response:
        """Issue one request and return the raw response, whatever its status.

        Raises:
            Unauthorized: ``authorized`` is set and there is no session (no request is sent)
            ServiceUnavailable: network or transport failure
        """
        headers: dict[str, str] = {}
        if authorized:
            current = session or self.store.snapshot()
            if current is None:
                raise Unauthorized("No active session")
            headers["Authorization"] = f"Bearer {current.token}"

        url = self.url_for(service, path)
        logger.debug(f"{method} {url} ({service.value})")
        try:
            return await self._client.request(
                method,
                url,
                json=json,
                files=list(files) if files else None,
                headers=headers,
                follow_redirects=follow_redirects,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{service.value} service timed out: {method} {path}")
            raise ServiceUnavailable(f"The {service.value} service did not respond in time") from e
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            logger.warning(f"{service.value} service unreachable: {e}")
            raise ServiceUnavailable() from e

    async def call(
        self,
        service: Service,
        path: str,
        method: str = "GET",
        *,
        json: Any = None,
        files: MultipartFiles | None = None,
        authorized: bool = False,
        session: Session | None = None,
    ) -> ParsedResponse:
        """Issue one request and interpret it.

        Raises:
            Unauthorized: 401/403, or no session for an authorized call
            ServiceUnavailable: transport failure or 5xx
            RequestRejected: any other non-2xx
            MalformedResponse: 2xx whose body is not JSON
            SessionChanged: the session was replaced or cleared while the call was in flight
        """
        generation = self.store.generation
        response = await self.send(
            service,
            path,
            method,
            json=json,
            files=files,
            authorized=authorized,
            session=session,
        )

        if authorized and self.store.generation != generation:
            logger.info(f"Discarding {method} {path} result: session changed while in flight")
            raise SessionChanged()

        data = self._decode_body(response)
        if response.is_success:
            return ParsedResponse(status_code=response.status_code, data=data, headers=response.headers)

        raise self._failure(service, response, data, authorized)

    def _decode_body(self, response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except (ValueError, RecursionError) as e:
            if response.is_success:
                raise MalformedResponse(status_code=response.status_code) from e
            return response.text

    def _failure(self, service: Service, response: httpx.Response, data: Any, authorized: bool) -> ChlorideError:
        status = response.status_code
        message = extract_server_message(data)
        logger.warning(f"{service.value} service answered {status}: {message or 'no message'}")

        if status == 401:
            if authorized:
                for listener in self._token_rejected_listeners:
                    listener()
            return Unauthorized(message, status_code=status)
        if status == 403:
            return Unauthorized(message, status_code=status)
        if status >= 500:
            return ServiceUnavailable(message, status_code=status)
        return RequestRejected(message, status_code=status)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ServiceRouter:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
