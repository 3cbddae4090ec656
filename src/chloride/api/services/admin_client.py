"""Admin operations against the control-plane API: roles, plans and users by role.

Every operation first checks the session for the ADMIN role. That check is
only a client-side convenience; the admin API re-authorizes every call.
Mutations never touch local state directly: on success the affected listing
is re-fetched from the server.
"""

from __future__ import annotations

import asyncio

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from chloride.api.service_router import Service, ServiceRouter
from chloride.core.constants import (
    MSG_ADMIN_NETWORK_ERROR,
    MSG_PLAN_CREATE_FAILED,
    MSG_PLAN_CREATED,
    MSG_PLAN_DELETE_FAILED,
    MSG_PLAN_DELETED,
    MSG_PLAN_FIELDS_REQUIRED,
    MSG_PLAN_FILE_LIMIT_INVALID,
    MSG_ROLE_CREATE_FAILED,
    MSG_ROLE_CREATED,
    MSG_ROLE_DELETE_FAILED,
    MSG_ROLE_DELETED,
    MSG_ROLE_NAME_REQUIRED,
    PLAN_ITEM_PATH,
    PLANS_CREATE_PATH,
    PLANS_LIST_PATH,
    ROLE_ADMIN,
    ROLE_ITEM_PATH,
    ROLE_USER,
    ROLE_USERS_PATH,
    ROLES_CREATE_PATH,
    ROLES_LIST_PATH,
    Settings,
    get_settings,
)
from chloride.core.session_manager import SessionManager
from chloride.models.error_models import (
    AdminRequired,
    ChlorideError,
    MalformedResponse,
    ServiceUnavailable,
    SessionChanged,
)
from chloride.models.schemas.admin import ActionResult, CreatePlanRequest, CreateRoleRequest, Plan, Role, UserByRole
from chloride.models.schemas.auth import Session
from chloride.utils.feedback import FeedbackBoard
from chloride.utils.json_utils import unwrap_collection
from chloride.utils.logger import logger

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


def _decode(data: Any, key: str, model: type[M]) -> list[M]:
    items = unwrap_collection(data, key)
    try:
        return [model.model_validate(item) for item in items]
    except ValidationError as e:
        raise MalformedResponse(f"Invalid {key} entry") from e


class AdminClient:
    """Role-gated role/plan management for administrators."""

    def __init__(
        self,
        router: ServiceRouter,
        sessions: SessionManager,
        settings: Settings | None = None,
        feedback: FeedbackBoard | None = None,
    ):
        """Initialize admin client.

        Args:
            router: Service router for control-plane calls
            sessions: Session manager consulted by the ADMIN gate
            settings: Redirect paths and feedback window (defaults to get_settings())
            feedback: Board receiving mutation results (one is created otherwise)
        """
        self.router = router
        self.sessions = sessions
        self.settings = settings or get_settings()
        self.feedback = feedback or FeedbackBoard(self.settings.feedback_display_seconds)

        # Last listings fetched from the server
        self.roles: list[Role] = []
        self.plans: list[Plan] = []
        self.users_by_role: list[UserByRole] = []
        self.selected_role = ROLE_USER

    # ------------------------------------------------------------------
    # Gate
    # ------------------------------------------------------------------

    def require_admin(self) -> Session:
        """Return the session if it holds the ADMIN role.

        Raises:
            LoginRequired: no session at all
            AdminRequired: session without ADMIN role; redirect to the dashboard
        """
        session = self.sessions.require_session()
        if not SessionManager.has_role(session, ROLE_ADMIN):
            logger.warning(f"Subject {session.subject_id} ({session.role}) denied admin access")
            raise AdminRequired(self.settings.dashboard_path)
        return session

    @staticmethod
    def can_delete_role(role: Role) -> bool:
        """Whether the delete control for ``role`` is enabled (protected roles are not)."""
        return not role.is_protected

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def load_dashboard(self) -> list[ActionResult[Any]]:
        """Initial load: roles, plans and users of the selected role, fetched concurrently.

        Returns:
            Results in order: roles, plans, users of ``selected_role``
        """
        self.require_admin()
        return await asyncio.gather(
            self.list_roles(),
            self.list_plans(),
            self.list_users_by_role(self.selected_role),
        )

    async def list_roles(self) -> ActionResult[list[Role]]:
        session = self.require_admin()

        async def fetch() -> list[Role]:
            response = await self.router.call(Service.ADMIN, ROLES_LIST_PATH, authorized=True, session=session)
            self.roles = _decode(response.data, "roles", Role)
            return self.roles

        return await self._run(fetch, "Failed to load roles")

    async def list_plans(self) -> ActionResult[list[Plan]]:
        session = self.require_admin()

        async def fetch() -> list[Plan]:
            response = await self.router.call(Service.ADMIN, PLANS_LIST_PATH, authorized=True, session=session)
            self.plans = _decode(response.data, "plans", Plan)
            return self.plans

        return await self._run(fetch, "Failed to load plans")

    async def list_users_by_role(self, role_name: str) -> ActionResult[list[UserByRole]]:
        session = self.require_admin()
        path = ROLE_USERS_PATH.format(role_name=quote(role_name, safe=""))

        async def fetch() -> list[UserByRole]:
            response = await self.router.call(Service.ADMIN, path, authorized=True, session=session)
            self.users_by_role = _decode(response.data, "users", UserByRole)
            return self.users_by_role

        return await self._run(fetch, "Failed to load users")

    async def select_role(self, role_name: str) -> ActionResult[list[UserByRole]]:
        """Change the users-by-role filter; re-fetches only when the filter changed."""
        self.require_admin()
        if role_name == self.selected_role and self.users_by_role:
            return ActionResult.ok(data=self.users_by_role)
        self.selected_role = role_name
        return await self.list_users_by_role(role_name)

    # ------------------------------------------------------------------
    # Role mutations
    # ------------------------------------------------------------------

    async def create_role(self, name: str, description: str = "") -> ActionResult[list[Role]]:
        """Create a role seeded with the all-false permission template."""
        session = self.require_admin()
        if not name or not name.strip():
            return ActionResult.fail(MSG_ROLE_NAME_REQUIRED)

        body = CreateRoleRequest(name=name.strip(), description=description).model_dump()

        async def mutate() -> None:
            await self.router.call(Service.ADMIN, ROLES_CREATE_PATH, "POST", json=body, authorized=True, session=session)

        return await self._mutate(mutate, MSG_ROLE_CREATED, MSG_ROLE_CREATE_FAILED, self.list_roles)

    async def delete_role(self, role_id: int | str) -> ActionResult[list[Role]]:
        """Delete a role.

        Protected roles have their control disabled (see can_delete_role), but
        an explicit call still goes out on the same path; the admin API is
        the authority that refuses it.
        """
        session = self.require_admin()
        path = ROLE_ITEM_PATH.format(role_id=quote(str(role_id), safe=""))

        async def mutate() -> None:
            await self.router.call(Service.ADMIN, path, "DELETE", authorized=True, session=session)

        return await self._mutate(mutate, MSG_ROLE_DELETED, MSG_ROLE_DELETE_FAILED, self.list_roles)

    # ------------------------------------------------------------------
    # Plan mutations
    # ------------------------------------------------------------------

    async def create_plan(self, name: str, file_limit: int | str, storage_limit: str) -> ActionResult[list[Plan]]:
        session = self.require_admin()
        if not name or not name.strip() or file_limit in (None, "") or not storage_limit or not storage_limit.strip():
            return ActionResult.fail(MSG_PLAN_FIELDS_REQUIRED)
        try:
            limit = int(file_limit)
        except (TypeError, ValueError):
            return ActionResult.fail(MSG_PLAN_FILE_LIMIT_INVALID)
        if limit <= 0:
            return ActionResult.fail(MSG_PLAN_FILE_LIMIT_INVALID)

        body = CreatePlanRequest(name=name.strip(), file_limit=limit, storage_limit=storage_limit.strip()).to_wire()

        async def mutate() -> None:
            await self.router.call(Service.ADMIN, PLANS_CREATE_PATH, "POST", json=body, authorized=True, session=session)

        return await self._mutate(mutate, MSG_PLAN_CREATED, MSG_PLAN_CREATE_FAILED, self.list_plans)

    async def delete_plan(self, plan_id: int | str) -> ActionResult[list[Plan]]:
        session = self.require_admin()
        path = PLAN_ITEM_PATH.format(plan_id=quote(str(plan_id), safe=""))

        async def mutate() -> None:
            await self.router.call(Service.ADMIN, path, "DELETE", authorized=True, session=session)

        return await self._mutate(mutate, MSG_PLAN_DELETED, MSG_PLAN_DELETE_FAILED, self.list_plans)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _run(self, action: Callable[[], Awaitable[T]], failure_message: str) -> ActionResult[T]:
        try:
            data = await action()
        except SessionChanged:
            raise
        except ChlorideError as e:
            message = self._failure_text(e, failure_message)
            logger.warning(f"{failure_message}: {e.message}")
            return ActionResult.fail(message)
        return ActionResult.ok(data=data)

    async def _mutate(
        self,
        mutate: Callable[[], Awaitable[None]],
        success_message: str,
        failure_message: str,
        refresh: Callable[[], Awaitable[ActionResult[T]]],
    ) -> ActionResult[T]:
        try:
            await mutate()
        except SessionChanged:
            raise
        except ChlorideError as e:
            message = self._failure_text(e, failure_message)
            self.feedback.error(message)
            logger.warning(f"{failure_message}: {e.message}")
            return ActionResult.fail(message)

        self.feedback.success(success_message)
        logger.info(success_message)
        refreshed = await refresh()
        return ActionResult.ok(success_message, refreshed.data)

    @staticmethod
    def _failure_text(error: ChlorideError, failure_message: str) -> str:
        if isinstance(error, ServiceUnavailable) and error.status_code is None:
            return MSG_ADMIN_NETWORK_ERROR
        return error.detail or failure_message
