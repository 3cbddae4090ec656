"""Session management: login, signup, logout and role/permission gating.

The session manager is the sole writer of the credential store. Everything
else reads the session through ``current_session()`` or the guards below.
"""

from __future__ import annotations

from chloride.api.service_router import Service, ServiceRouter
from chloride.core.constants import (
    LOGIN_PATH,
    MIN_PASSWORD_LENGTH,
    MSG_LOGIN_FAILED,
    MSG_SIGNUP_FAILED,
    SIGNUP_PATH,
    Settings,
    get_settings,
)
from chloride.core.credential_store import CredentialStore
from chloride.models.error_models import (
    DuplicateEmail,
    InvalidCredentials,
    LoginRequired,
    PasswordMismatch,
    RequestRejected,
    Unauthorized,
    WeakPassword,
)
from chloride.models.schemas.auth import LoginRequest, Session, SignupRequest
from chloride.utils.logger import logger

#: Lower-cased fragments of signup rejections that mean "email taken".
DUPLICATE_EMAIL_MARKERS = ("already", "exists", "duplicate", "taken", "registered")


class SessionManager:
    """Owns the authenticated identity for one client session."""

    def __init__(self, store: CredentialStore, router: ServiceRouter, settings: Settings | None = None):
        """Initialize session manager.

        Args:
            store: Credential store (written only from here)
            router: Service router used for login/signup
            settings: Navigation paths (defaults to get_settings())
        """
        self.store = store
        self.router = router
        self.settings = settings or get_settings()
        # An expired/invalid token reported by any service ends the session
        router.add_token_rejected_listener(self.invalidate)

    @property
    def generation(self) -> int:
        return self.store.generation

    def current_session(self) -> Session | None:
        """Pure read of the store. No network I/O; never raises."""
        return self.store.snapshot()

    def require_session(self) -> Session:
        """Guard for protected views.

        Raises:
            LoginRequired: no session; the caller must stop rendering and
                navigate to ``redirect_to``
        """
        session = self.store.snapshot()
        if session is None:
            raise LoginRequired(self.settings.login_path)
        return session

    def redirect_if_authenticated(self) -> str | None:
        """Where an already-logged-in user should go instead of login/signup."""
        if self.store.snapshot() is not None:
            return self.settings.dashboard_path
        return None

    async def authenticate(self, email: str, password: str) -> Session:
        """Log in against the control-plane API and persist the session.

        Raises:
            InvalidCredentials: the API rejected the credentials
            ServiceUnavailable: network failure or 5xx
            MalformedResponse: success body does not carry ``{token, user}``
        """
        body = LoginRequest(email=email, password=password).model_dump()
        try:
            response = await self.router.call(Service.ADMIN, LOGIN_PATH, "POST", json=body)
        except (Unauthorized, RequestRejected) as e:
            logger.info(f"Login rejected ({e.status_code})")
            raise InvalidCredentials(e.detail or MSG_LOGIN_FAILED, status_code=e.status_code) from e

        session = Session.from_auth_payload(response.data)
        self.store.write(session)
        logger.info(f"Logged in subject {session.subject_id} with role {session.role}")
        return session

    async def register(self, email: str, password: str, confirm_password: str) -> Session:
        """Create an account on the auth service and persist the resulting session.

        Password confirmation and minimum length are checked before any
        network call; uniqueness is decided by the service.

        Raises:
            PasswordMismatch: ``password != confirm_password``
            WeakPassword: password shorter than MIN_PASSWORD_LENGTH
            DuplicateEmail: the service reports the email as taken
            RequestRejected: any other rejection, with the server's message
            ServiceUnavailable: network failure or 5xx
        """
        if password != confirm_password:
            raise PasswordMismatch()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPassword(MIN_PASSWORD_LENGTH)

        body = SignupRequest(email=email, password=password).model_dump()
        try:
            response = await self.router.call(Service.AUTH, SIGNUP_PATH, "POST", json=body)
        except RequestRejected as e:
            lowered = (e.detail or "").lower()
            if e.status_code == 409 or any(marker in lowered for marker in DUPLICATE_EMAIL_MARKERS):
                raise DuplicateEmail(e.detail, status_code=e.status_code) from e
            logger.info(f"Signup rejected ({e.status_code})")
            raise RequestRejected(e.detail or MSG_SIGNUP_FAILED, status_code=e.status_code) from e

        session = Session.from_auth_payload(response.data)
        self.store.write(session)
        logger.info(f"Registered subject {session.subject_id}")
        return session

    def logout(self) -> str:
        """Clear the session unconditionally. Idempotent; never raises.

        Returns:
            Landing path the presentation layer navigates to
        """
        try:
            self.store.clear()
        except OSError as e:
            # The in-memory snapshot is already gone; only persistence failed
            logger.error(f"Failed to clear persisted credentials: {e}")
        logger.info("Logged out")
        return self.settings.home_path

    def invalidate(self) -> None:
        """End the session after a service rejected its token."""
        if self.store.snapshot() is None:
            return
        logger.warning("Session token rejected by service; clearing session")
        self.logout()

    @staticmethod
    def has_role(session: Session | None, role_name: str) -> bool:
        """Role check against the session snapshot. False without a session."""
        if session is None:
            return False
        return session.role == role_name

    @staticmethod
    def has_capability(session: Session | None, capability: str) -> bool:
        """Capability check against the snapshot's permission map. False without a session."""
        if session is None:
            return False
        return bool(session.permissions.get(capability, False))
