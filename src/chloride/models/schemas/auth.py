"""
Authentication-related schemas.

Request bodies sent to the login/signup endpoints and the Session snapshot
built from their ``{token, user}`` response contract.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from chloride.core.constants import DEFAULT_ROLE, STORAGE_TOKEN_KEY, STORAGE_USER_KEY
from chloride.models.error_models import MalformedResponse


class LoginRequest(BaseModel):
    """Login credentials."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "password": "secure_password_123",
            }
        }
    )

    email: str = Field(..., description="User email address")
    password: str = Field(..., description="User password")


class SignupRequest(LoginRequest):
    """Signup body. Password confirmation never leaves the client."""


class UserProfile(BaseModel):
    """Public user information as returned by the auth endpoints."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": 42,
                "email": "user@example.com",
                "role": "USER",
                "plan": "FREE",
            }
        },
    )

    id: int = Field(..., description="Subject ID")
    email: str = Field(..., description="User email address")
    role: str | None = Field(default=None, description="Role name (USER, STAFF, ADMIN or custom)")
    plan: str | None = Field(default=None, description="Plan name")
    permissions: dict[str, bool] = Field(default_factory=dict, description="Capability snapshot of the role")

    @model_validator(mode="before")
    @classmethod
    def lift_role_permissions(cls, data: Any) -> Any:
        """Take the capability map from a nested role object when none is given at the top level."""
        if not isinstance(data, dict) or data.get("permissions"):
            return data
        role = data.get("role")
        if isinstance(role, dict) and isinstance(role.get("permissions"), dict):
            return {**data, "permissions": role["permissions"]}
        return data

    @field_validator("role", "plan", mode="before")
    @classmethod
    def unwrap_named(cls, v: Any) -> Any:
        """Accept either a bare name or a ``{"name": ...}`` object."""
        if isinstance(v, dict):
            return v.get("name")
        return v


class Session(BaseModel):
    """Authenticated identity held by the credential store.

    Frozen: the session manager replaces it wholesale instead of mutating it.
    """

    model_config = ConfigDict(frozen=True)

    subject_id: int
    email: str
    role: str = DEFAULT_ROLE
    plan_name: str | None = None
    token: str = Field(..., min_length=1, repr=False)
    permissions: dict[str, bool] = Field(default_factory=dict)

    @classmethod
    def from_profile(cls, token: str, profile: UserProfile) -> Session:
        return cls(
            subject_id=profile.id,
            email=profile.email,
            role=profile.role or DEFAULT_ROLE,
            plan_name=profile.plan,
            token=token,
            permissions=profile.permissions,
        )

    @classmethod
    def from_auth_payload(cls, payload: Any) -> Session:
        """Decode a login/signup response body.

        Raises:
            MalformedResponse: body does not match ``{token, user: {id, email, ...}}``
        """
        if not isinstance(payload, dict):
            raise MalformedResponse("Authentication response is not an object")

        token = payload.get("token")
        if not isinstance(token, str) or not token:
            raise MalformedResponse("Authentication response carries no token")

        try:
            profile = UserProfile.model_validate(payload.get("user"))
        except ValidationError as e:
            raise MalformedResponse("Authentication response carries no valid user") from e
        return cls.from_profile(token, profile)

    def profile(self) -> UserProfile:
        return UserProfile(
            id=self.subject_id,
            email=self.email,
            role=self.role,
            plan=self.plan_name,
            permissions=dict(self.permissions),
        )

    def to_storage(self) -> dict[str, str]:
        """Key/value pair layout used by credential storage backends."""
        return {
            STORAGE_TOKEN_KEY: self.token,
            STORAGE_USER_KEY: self.profile().model_dump_json(),
        }
