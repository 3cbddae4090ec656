"""Client initialization for Chloride.

Handles everything needed before the presentation layer takes over:
environment loading, settings validation, logging configuration, credential
hydration and wiring of the service components.
"""

from __future__ import annotations

from pathlib import Path

import httpx

from dotenv import load_dotenv

from chloride.api.service_router import ServiceRouter
from chloride.api.services.admin_client import AdminClient
from chloride.api.services.file_catalog import FileCatalog
from chloride.api.services.redirect_resolver import RedirectResolver
from chloride.app.state import ClientState
from chloride.core.constants import Settings, get_settings, reload_settings
from chloride.core.credential_store import CredentialStore, FileStorage, MemoryStorage, StorageBackend
from chloride.core.session_manager import SessionManager
from chloride.utils.feedback import FeedbackBoard
from chloride.utils.logger import logger


def initialize_client(
    settings: Settings | None = None,
    *,
    env_file: str | Path | None = None,
    storage: StorageBackend | None = None,
    client: httpx.AsyncClient | None = None,
) -> ClientState:
    """Build a fully wired ClientState.

    Steps:
    1. Load ``env_file`` into the environment (if given) and validate settings
    2. Configure logging from settings
    3. Hydrate the credential store (file-backed when CREDENTIAL_STORE_PATH is set)
    4. Wire router, session manager and the service clients

    Args:
        settings: Explicit settings (skips environment loading)
        env_file: Extra dotenv file loaded before settings are read
        storage: Storage backend override (tests, embedding hosts)
        client: Pre-built httpx client (tests pass one with httpx.MockTransport)

    Returns:
        ClientState ready for use; close it with shutdown_client() or ``async with``

    Raises:
        pydantic.ValidationError: invalid configuration
    """
    if settings is None:
        if env_file is not None:
            load_dotenv(env_file, override=True)
            settings = reload_settings()
        else:
            settings = get_settings()

    logger.configure(debug=settings.debug, log_dir=settings.log_dir)
    logger.info(f"Settings loaded for {settings.app_env} environment")

    if storage is None:
        if settings.credential_store_path is not None:
            storage = FileStorage(settings.credential_store_path)
            logger.info(f"Persisting credentials to {settings.credential_store_path}")
        else:
            storage = MemoryStorage()

    store = CredentialStore(storage)
    router = ServiceRouter(store, settings=settings, client=client)
    if settings.http_request_logging and client is None:
        logger.info("HTTP request/response logging enabled")

    feedback = FeedbackBoard(settings.feedback_display_seconds)
    sessions = SessionManager(store, router, settings=settings)

    state = ClientState(
        settings=settings,
        store=store,
        router=router,
        sessions=sessions,
        catalog=FileCatalog(router, settings=settings),
        admin=AdminClient(router, sessions, settings=settings, feedback=feedback),
        redirects=RedirectResolver(router),
        feedback=feedback,
    )

    session = store.snapshot()
    if session is not None:
        logger.info(f"Client initialized with restored session (role {session.role})")
    else:
        logger.info("Client initialized without session")
    return state


async def shutdown_client(state: ClientState) -> None:
    """Release network resources. Credentials are left in storage."""
    await state.aclose()
    logger.info("Client shut down")
