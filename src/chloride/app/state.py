"""Client state management for Chloride.

ClientState is the single container for one client session's components.
It is passed explicitly to the presentation layer instead of living in
module-level globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import TracebackType

from chloride.api.service_router import ServiceRouter
from chloride.api.services.admin_client import AdminClient
from chloride.api.services.file_catalog import FileCatalog
from chloride.api.services.redirect_resolver import RedirectResolver
from chloride.core.constants import Settings
from chloride.core.credential_store import CredentialStore
from chloride.core.session_manager import SessionManager
from chloride.utils.feedback import FeedbackBoard


@dataclass
class ClientState:
    """Wired client components for one browser-equivalent session.

    Attributes:
        settings: Validated settings the components were built from
        store: Credential store (written only by ``sessions``)
        router: Service router owning the shared httpx client
        sessions: Login/signup/logout and role gating
        catalog: File listing and uploads
        admin: Role-gated admin operations
        redirects: Short-code resolution
        feedback: Transient message board shared by admin actions
    """

    settings: Settings
    store: CredentialStore
    router: ServiceRouter
    sessions: SessionManager
    catalog: FileCatalog
    admin: AdminClient
    redirects: RedirectResolver
    feedback: FeedbackBoard = field(default_factory=FeedbackBoard)
    closed: bool = False

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self.router.aclose()

    async def __aenter__(self) -> ClientState:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
