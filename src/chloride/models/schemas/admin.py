"""
Admin control-plane schemas: roles, plans, users-by-role and action results.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from chloride.core.constants import DEFAULT_ROLE_PERMISSIONS, PROTECTED_ROLE_NAMES

T = TypeVar("T")


class Role(BaseModel):
    """A named role with its capability map."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | str
    name: str
    description: str | None = None
    permissions: dict[str, bool] = Field(default_factory=dict)

    @property
    def is_protected(self) -> bool:
        return self.name in PROTECTED_ROLE_NAMES


class Plan(BaseModel):
    """A quota tier."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int | str
    name: str
    file_limit: int = Field(..., ge=0, validation_alias=AliasChoices("file_limit", "fileLimit"))
    storage_limit: str = Field(..., validation_alias=AliasChoices("storage_limit", "storageLimit"))


class UserByRole(BaseModel):
    """User row returned by the users-by-role listing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int | str
    email: str
    role_id: int | str | None = Field(default=None, validation_alias=AliasChoices("role_id", "roleId"))
    plan_id: int | str | None = Field(default=None, validation_alias=AliasChoices("plan_id", "planId"))


class CreateRoleRequest(BaseModel):
    """Body for POST /api/roles/admin/create."""

    name: str = Field(..., min_length=1)
    description: str = ""
    permissions: dict[str, bool] = Field(default_factory=lambda: dict(DEFAULT_ROLE_PERMISSIONS))


class CreatePlanRequest(BaseModel):
    """Body for POST /api/plans/admin/create (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    file_limit: int = Field(..., gt=0, serialization_alias="fileLimit")
    storage_limit: str = Field(..., min_length=1, serialization_alias="storageLimit")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ActionResult(BaseModel, Generic[T]):
    """Outcome of an admin operation: success flag, user-facing message, refreshed data."""

    success: bool
    message: str = ""
    data: T | None = None

    @classmethod
    def ok(cls, message: str = "", data: T | None = None) -> ActionResult[T]:
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str) -> ActionResult[T]:
        return cls(success=False, message=message)
