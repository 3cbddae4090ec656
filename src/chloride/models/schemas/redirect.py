"""
Short-code resolution outcome.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class RedirectSignal(str, Enum):
    """Which response shape produced the target URL."""

    LOCATION_HEADER = "locationHeader"
    JSON_BODY = "jsonBody"
    FALLBACK_DIRECT = "fallbackDirect"


class RedirectOutcome(BaseModel):
    """Transient result of one resolution attempt; never persisted.

    For ``FALLBACK_DIRECT`` the target is the read service's own short-code
    endpoint, which performs any further redirection server-side.
    """

    model_config = ConfigDict(frozen=True)

    short_code: str
    target_url: str | None
    source_signal: RedirectSignal

    @property
    def resolved(self) -> bool:
        return self.source_signal is not RedirectSignal.FALLBACK_DIRECT
