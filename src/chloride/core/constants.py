"""
Constants and configuration for Chloride.
Centralizes all magic numbers and configuration values.
Includes Pydantic validation for environment variables.
"""

from __future__ import annotations

import os
import threading

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import (
    DotEnvSettingsSource,
    PydanticBaseSettingsSource,
)

# ============================================================================
# Project Paths
# ============================================================================

#: Package source directory for .env file resolution
_PACKAGE_DIR = Path(__file__).parent.parent

# ============================================================================
# Service Defaults
# ============================================================================

#: Default base URL of the authentication service (signup).
DEFAULT_AUTH_API_URL = "http://localhost:8082"

#: Default base URL of the control-plane API (login, roles, plans).
DEFAULT_API_URL = "http://localhost:3000"

#: Default base URL of the read service (listings, short-code resolution).
DEFAULT_READER_API_URL = "http://localhost:8080"

#: Default base URL of the write service (uploads).
DEFAULT_WRITER_API_URL = "http://localhost:8081"

#: Default timeout applied to every backend call (seconds).
#: Backend calls are user-triggered; a hung call would otherwise leave the
#: triggering control in its "in progress" state forever.
DEFAULT_HTTP_TIMEOUT = 30.0

# ============================================================================
# Endpoint Paths
# ============================================================================

#: Signup endpoint on the auth service.
SIGNUP_PATH = "/api/auth/signup"

#: Login endpoint on the control-plane API.
LOGIN_PATH = "/api/auth/login"

#: Listing of the current user's files on the read service.
MY_FILES_PATH = "/api/files/my-files"

#: Single and multi upload endpoints on the write service.
UPLOAD_SINGLE_PATH = "/api/upload/single"
UPLOAD_MULTIPLE_PATH = "/api/upload/multiple"

#: Admin endpoints on the control-plane API.
ROLES_LIST_PATH = "/api/roles/admin/all"
ROLES_CREATE_PATH = "/api/roles/admin/create"
ROLE_ITEM_PATH = "/api/roles/admin/{role_id}"
ROLE_USERS_PATH = "/api/roles/admin/users/{role_name}"
PLANS_LIST_PATH = "/api/plans/admin/all"
PLANS_CREATE_PATH = "/api/plans/admin/create"
PLAN_ITEM_PATH = "/api/plans/admin/{plan_id}"

# ============================================================================
# Session & Role Configuration
# ============================================================================

#: Minimum password length accepted by register() before any network call.
MIN_PASSWORD_LENGTH = 6

#: Storage keys for the persisted bearer token and user profile.
STORAGE_TOKEN_KEY = "token"
STORAGE_USER_KEY = "user"

#: Built-in role names.
ROLE_USER = "USER"
ROLE_STAFF = "STAFF"
ROLE_ADMIN = "ADMIN"

#: Role assumed when the auth payload carries none.
DEFAULT_ROLE = ROLE_USER

#: Roles that can never be deleted (client disables the action, admin API enforces it).
PROTECTED_ROLE_NAMES: frozenset[str] = frozenset({ROLE_USER, ROLE_STAFF, ROLE_ADMIN})

#: Permission template seeded into every newly created role.
DEFAULT_ROLE_PERMISSIONS: dict[str, bool] = {
    "canManageRoles": False,
    "canManagePlans": False,
    "canViewAllUsers": False,
    "canDeleteAnyFile": False,
    "canAccessAnalytics": False,
}

# ============================================================================
# File Catalog Configuration
# ============================================================================

#: Upper bound of files per multi-upload call. Enforced by the write service
#: only (the limit is plan-dependent); kept here for display purposes.
MAX_FILES_PER_UPLOAD = 10

#: Multipart field names used by the write service.
UPLOAD_SINGLE_FIELD = "file"
UPLOAD_MULTIPLE_FIELD = "files"

#: Base-1024 units used by format_file_size().
FILE_SIZE_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB")

#: HTTP statuses the write service uses for quota violations.
QUOTA_STATUS_CODES: frozenset[int] = frozenset({402, 413})

#: Lower-cased message fragments that mark an upload rejection as a quota problem.
QUOTA_MESSAGE_MARKERS: tuple[str, ...] = ("quota", "limit exceeded", "storage limit", "file limit")

# ============================================================================
# Logging Configuration
# ============================================================================

#: Maximum size in bytes for log files before rotation (10MB).
LOG_MAX_SIZE = 10 * 1024 * 1024

#: Number of client log backups to retain during rotation.
LOG_BACKUP_COUNT_CLIENT = 5

#: Number of error log backups to retain during rotation.
LOG_BACKUP_COUNT_ERRORS = 3

#: Length of generated correlation IDs (hex characters).
CORRELATION_ID_LENGTH = 8

# ============================================================================
# User-facing Messages
# ============================================================================

MSG_LOGIN_FAILED = "Login failed. Please try again."
MSG_SIGNUP_FAILED = "Signup failed. Please try again."
MSG_NETWORK_ERROR = "Network error. Please check your connection."
MSG_PASSWORD_MISMATCH = "Passwords do not match"
MSG_WEAK_PASSWORD = "Password must be at least {min_length} characters long"
MSG_UPLOAD_FAILED = "Upload failed. Please try again."
MSG_UPLOAD_SINGLE_OK = "File uploaded successfully!"
MSG_UPLOAD_MULTIPLE_OK = "{count} files uploaded successfully!"
MSG_ADMIN_NETWORK_ERROR = "Network error"
MSG_ROLE_CREATED = "Role created successfully"
MSG_ROLE_CREATE_FAILED = "Failed to create role"
MSG_ROLE_DELETED = "Role deleted successfully"
MSG_ROLE_DELETE_FAILED = "Failed to delete role"
MSG_PLAN_CREATED = "Plan created successfully"
MSG_PLAN_CREATE_FAILED = "Failed to create plan"
MSG_PLAN_DELETED = "Plan deleted successfully"
MSG_PLAN_DELETE_FAILED = "Failed to delete plan"
MSG_ROLE_NAME_REQUIRED = "Role name is required"
MSG_PLAN_FIELDS_REQUIRED = "Plan name, file limit and storage limit are required"
MSG_PLAN_FILE_LIMIT_INVALID = "File limit must be a positive integer"

# ============================================================================
# Environment Configuration with Pydantic Validation
# ============================================================================

#: Valid environment names for configuration loading
Environment = Literal["development", "production", "test"]


def _get_env_files() -> list[Path]:
    """Determine which .env files to load based on APP_ENV.

    Load order (later files override earlier - pydantic-settings last-wins):
    1. .env (base defaults) - lowest priority
    2. .env.{environment} (environment-specific overrides)
    3. .env.local (local developer overrides, gitignored) - highest priority

    Returns:
        List of Path objects for env files that exist.
    """
    env_name = os.getenv("APP_ENV", "development").lower()
    if env_name not in ("development", "production", "test"):
        env_name = "development"

    candidates = [
        _PACKAGE_DIR / ".env",
        _PACKAGE_DIR / f".env.{env_name}",
        _PACKAGE_DIR / ".env.local",
    ]
    return [p for p in candidates if p.exists()]


class Settings(BaseSettings):
    """Client settings with validation and environment-specific file support.

    Configuration priority (highest to lowest):
    1. Values passed to Settings() constructor
    2. Environment variables
    3. .env.local > .env.{APP_ENV} > .env (dotenv files, last wins)

    Each service base URL is independently overridable. The ``NEXT_PUBLIC_*``
    names used by the web front end are accepted as aliases so one env file
    can serve both.
    """

    # Environment identification
    app_env: Environment = Field(default="development", description="Application environment")

    # Debug and logging
    debug: bool = Field(default=False, description="Enable debug logging")
    http_request_logging: bool = Field(default=False, description="Enable HTTP request/response logging")
    log_dir: Path | None = Field(default=None, description="Directory for JSON log files (console only when unset)")

    # Backend services
    auth_api_url: str = Field(
        default=DEFAULT_AUTH_API_URL,
        validation_alias=AliasChoices("auth_api_url", "next_public_auth_api_url"),
        description="Authentication service base URL",
    )
    api_url: str = Field(
        default=DEFAULT_API_URL,
        validation_alias=AliasChoices("api_url", "next_public_api_url"),
        description="Control-plane API base URL",
    )
    reader_api_url: str = Field(
        default=DEFAULT_READER_API_URL,
        validation_alias=AliasChoices("reader_api_url", "next_public_reader_api_url"),
        description="Read service base URL",
    )
    writer_api_url: str = Field(
        default=DEFAULT_WRITER_API_URL,
        validation_alias=AliasChoices("writer_api_url", "next_public_writer_api_url"),
        description="Write service base URL",
    )

    # HTTP client
    http_timeout: float | None = Field(
        default=DEFAULT_HTTP_TIMEOUT,
        description="Timeout for backend calls in seconds (None disables)",
    )

    # Credential persistence
    credential_store_path: Path | None = Field(
        default=None,
        description="JSON file used to persist the session (in-memory only when unset)",
    )

    # Navigation targets handed back to the presentation layer
    login_path: str = Field(default="/login", description="Unauthenticated entry point")
    dashboard_path: str = Field(default="/dashboard", description="Non-privileged landing view")
    home_path: str = Field(default="/", description="Landing view after logout")

    # Presentation helpers
    feedback_display_seconds: float = Field(default=3.0, description="How long action feedback stays visible")
    recent_files_limit: int = Field(default=5, description="Default number of recent files to show")

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority for environment-specific config.

        Priority (highest to lowest):
        1. init_settings - Values passed to Settings() constructor
        2. env_settings - Environment variables
        3. dotenv files - .env.local > .env.{APP_ENV} > .env (last-wins in list)
        """
        dotenv_source = DotEnvSettingsSource(
            settings_cls,
            env_file=_get_env_files(),
            env_file_encoding="utf-8",
        )
        return (init_settings, env_settings, dotenv_source)

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | None) -> str:
        """Validate and normalize APP_ENV value."""
        if v is None:
            return "development"
        normalized = str(v).lower()
        if normalized not in ("development", "production", "test"):
            raise ValueError(f"app_env must be 'development', 'production', or 'test', got '{v}'")
        return normalized

    @field_validator("auth_api_url", "api_url", "reader_api_url", "writer_api_url")
    @classmethod
    def validate_service_url(cls, v: str) -> str:
        """Require an http(s) URL and strip trailing slashes."""
        value = v.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"service URL must start with http:// or https://, got '{v}'")
        return value.rstrip("/")

    @field_validator("http_timeout")
    @classmethod
    def validate_http_timeout(cls, v: float | None) -> float | None:
        """Reject non-positive timeouts (use None to disable)."""
        if v is not None and v <= 0:
            raise ValueError("http_timeout must be positive or None")
        return v

    @field_validator("feedback_display_seconds")
    @classmethod
    def validate_feedback_display(cls, v: float) -> float:
        if v < 0:
            raise ValueError("feedback_display_seconds must not be negative")
        return v

    @field_validator("recent_files_limit")
    @classmethod
    def validate_recent_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("recent_files_limit must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_production(self) -> Settings:
        """Production deployments must not talk to localhost services."""
        if self.app_env == "production":
            local = [
                name
                for name in ("auth_api_url", "api_url", "reader_api_url", "writer_api_url")
                if "://localhost" in getattr(self, name) or "://127.0.0.1" in getattr(self, name)
            ]
            if local:
                raise ValueError(
                    "Configuration Error: service URLs must not point at localhost in production.\n"
                    f"Set {', '.join(n.upper() for n in local)} in your .env.production file."
                )
        return self

    def service_urls(self) -> dict[str, str]:
        """Base URL per logical service name."""
        return {
            "auth": self.auth_api_url,
            "admin": self.api_url,
            "read": self.reader_api_url,
            "write": self.writer_api_url,
        }

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.app_env == "test"


# ============================================================================
# Settings Management (Thread-safe)
# ============================================================================


class _SettingsManager:
    """Thread-safe settings manager.

    Uses a class to avoid global statement warnings from linters.
    """

    __slots__ = ("_instance", "_lock")

    def __init__(self) -> None:
        self._instance: Settings | None = None
        self._lock = threading.Lock()

    def get(self) -> Settings:
        """Get the cached settings instance, loading it on first use.

        Raises:
            ValueError: If required configuration is missing or invalid.
        """
        if self._instance is not None:
            return self._instance

        with self._lock:
            if self._instance is None:
                self._instance = Settings()
            return self._instance

    def reload(self) -> Settings:
        """Force reload settings from environment and dotenv files."""
        with self._lock:
            self._instance = Settings()
            return self._instance

    def reset(self) -> None:
        """Drop the cached instance (tests)."""
        with self._lock:
            self._instance = None


_settings_manager = _SettingsManager()


def get_settings() -> Settings:
    """Get validated settings instance (thread-safe, cached)."""
    return _settings_manager.get()


def reload_settings() -> Settings:
    """Force reload of settings from environment files."""
    return _settings_manager.reload()


def reset_settings() -> None:
    """Forget cached settings so the next get_settings() call re-reads the environment."""
    _settings_manager.reset()
