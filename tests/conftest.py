"""Shared test fixtures for the Chloride test suite.

Backend services are replaced by a recording FakeBackend mounted on
httpx.MockTransport; no test touches the network.
"""

from __future__ import annotations

import json as jsonlib

from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest

from chloride.api.service_router import ServiceRouter
from chloride.core.constants import Settings, reset_settings
from chloride.core.credential_store import CredentialStore, MemoryStorage, reset_credential_store
from chloride.core.session_manager import SessionManager
from chloride.models.schemas.auth import Session

AUTH_URL = "http://auth.test"
API_URL = "http://api.test"
READ_URL = "http://read.test"
WRITE_URL = "http://write.test"

Handler = Callable[[httpx.Request], httpx.Response]


# ============================================================================
# Test Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Drop cached settings and the process-wide credential store around each test."""
    reset_settings()
    reset_credential_store()
    yield
    reset_settings()
    reset_credential_store()


# ============================================================================
# Fake Backend
# ============================================================================


class FakeBackend:
    """Routes requests by (method, URL without query) and records every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        url: str,
        status: int = 200,
        json: Any = None,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> None:
        """Register a canned response (a fresh Response is built per request)."""

        def handler(request: httpx.Request) -> httpx.Response:
            if json is not None:
                return httpx.Response(status, json=json, headers=headers)
            return httpx.Response(status, content=content or b"", headers=headers)

        self.routes[(method.upper(), url)] = handler

    def add_handler(self, method: str, url: str, handler: Handler) -> None:
        self.routes[(method.upper(), url)] = handler

    def fail(self, method: str, url: str, exc_type: type[httpx.TransportError] = httpx.ConnectError) -> None:
        """Make the route raise a transport error."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_type("connection failed", request=request)

        self.routes[(method.upper(), url)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, str(request.url.copy_with(query=None)))
        handler = self.routes.get(key)
        if handler is None:
            return httpx.Response(404, json={"message": f"No route for {key[0]} {key[1]}"})
        return handler(request)

    def requests_to(self, method: str, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and str(r.url.copy_with(query=None)) == url]

    @staticmethod
    def json_body(request: httpx.Request) -> Any:
        return jsonlib.loads(request.content.decode("utf-8"))


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="test",
        auth_api_url=AUTH_URL,
        api_url=API_URL,
        reader_api_url=READ_URL,
        writer_api_url=WRITE_URL,
        http_timeout=5.0,
        feedback_display_seconds=3.0,
        recent_files_limit=5,
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def http_client(backend: FakeBackend) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(backend))


@pytest.fixture
def store() -> CredentialStore:
    return CredentialStore(MemoryStorage())


@pytest.fixture
def router(store: CredentialStore, settings: Settings, http_client: httpx.AsyncClient) -> ServiceRouter:
    return ServiceRouter(store, settings=settings, client=http_client)


@pytest.fixture
def sessions(store: CredentialStore, router: ServiceRouter, settings: Settings) -> SessionManager:
    return SessionManager(store, router, settings=settings)


# ============================================================================
# Session Fixtures
# ============================================================================


def make_session(role: str = "USER", subject_id: int = 1, **overrides: Any) -> Session:
    data: dict[str, Any] = {
        "subject_id": subject_id,
        "email": f"{role.lower()}@example.com",
        "role": role,
        "plan_name": "FREE",
        "token": f"token-{role.lower()}-{subject_id}",
    }
    data.update(overrides)
    return Session(**data)


def auth_payload(
    role: str = "USER", subject_id: int = 1, token: str = "tok-123", email: str = "user@example.com"
) -> dict[str, Any]:
    """``{token, user}`` body as returned by login/signup."""
    return {
        "token": token,
        "user": {"id": subject_id, "email": email, "role": role, "plan": "FREE"},
    }


def file_payload(file_id: int, name: str | None = None, short: bool = True) -> dict[str, Any]:
    key = f"k{file_id}"
    record: dict[str, Any] = {
        "id": file_id,
        "name": name or f"file-{file_id}.txt",
        "size": 1024 * file_id,
        "keyId": key,
        "OriginalViewUrl": f"{READ_URL}/files/{key}/view",
        "OriginalDownloadUrl": f"{READ_URL}/files/{key}/download",
    }
    if short:
        record["ShortViewUrl"] = f"{READ_URL}/v{file_id}"
        record["ShortDownloadUrl"] = f"{READ_URL}/d{file_id}"
    return record


@pytest.fixture
def user_session(store: CredentialStore) -> Session:
    session = make_session("USER")
    store.write(session)
    return session


@pytest.fixture
def admin_session(store: CredentialStore) -> Session:
    session = make_session("ADMIN", subject_id=99)
    store.write(session)
    return session


@pytest.fixture
def session_factory() -> Callable[..., Session]:
    return make_session


@pytest.fixture
def auth_body() -> Callable[..., dict[str, Any]]:
    return auth_payload


@pytest.fixture
def file_body() -> Callable[..., dict[str, Any]]:
    return file_payload
