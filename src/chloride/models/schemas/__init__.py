"""Pydantic schemas for backend payloads and client-side value objects."""

from chloride.models.schemas.admin import (
    ActionResult,
    CreatePlanRequest,
    CreateRoleRequest,
    Plan,
    Role,
    UserByRole,
)
from chloride.models.schemas.auth import LoginRequest, Session, SignupRequest, UserProfile
from chloride.models.schemas.files import FileRecord, ShareLinks, UploadFile
from chloride.models.schemas.redirect import RedirectOutcome, RedirectSignal

__all__ = [
    "ActionResult",
    "CreatePlanRequest",
    "CreateRoleRequest",
    "FileRecord",
    "LoginRequest",
    "Plan",
    "RedirectOutcome",
    "RedirectSignal",
    "Role",
    "Session",
    "ShareLinks",
    "SignupRequest",
    "UploadFile",
    "UserByRole",
    "UserProfile",
]
