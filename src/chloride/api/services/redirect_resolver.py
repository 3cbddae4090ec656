"""Short-code resolution against the read service.

One attempt walks a fixed chain:

1. Probe ``GET <read>/<code>`` without following redirects.
2. Redirect-shaped answer (301/302 or any 3xx carrying a Location) with a
   non-empty ``Location`` header: resolved from the header.
3. 2xx JSON body with a non-empty ``url`` or ``originalUrl``: resolved from the body.
4. Anything else, including network and parse failures at any step: fall
   back to the read service's own short-code endpoint and let it redirect.

The read service's redirect mechanics differ between deployments, so no
single answer shape is assumed and a broken link never surfaces as an error.
"""

from __future__ import annotations

import inspect

from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote, urljoin

import httpx

from chloride.api.service_router import Service, ServiceRouter
from chloride.models.schemas.redirect import RedirectOutcome, RedirectSignal
from chloride.utils.logger import logger

#: Statuses treated as redirects even without httpx's is_redirect (e.g. missing Location).
REDIRECT_STATUSES = frozenset({301, 302})

#: Body fields checked, in order, for the target URL.
BODY_URL_FIELDS = ("url", "originalUrl")

Navigator = Callable[[str], Awaitable[Any] | Any]


class RedirectResolver:
    """Turns a short code into the URL the browser should open."""

    def __init__(self, router: ServiceRouter):
        self.router = router

    def fallback_url(self, short_code: str) -> str:
        """Direct short-code endpoint on the read service."""
        return self.router.url_for(Service.READ, quote(short_code, safe=""))

    async def resolve(self, short_code: str) -> RedirectOutcome:
        """Resolve ``short_code``. Never raises for service-side problems."""
        code = short_code.strip() if short_code else ""
        if not code:
            raise ValueError("short_code must not be empty")

        try:
            response = await self.router.send(Service.READ, quote(code, safe=""), follow_redirects=False)

            target = self._from_location(response)
            if target:
                logger.debug(f"Short code {code} resolved via Location header")
                return RedirectOutcome(short_code=code, target_url=target, source_signal=RedirectSignal.LOCATION_HEADER)

            target = self._from_body(response)
            if target:
                logger.debug(f"Short code {code} resolved via JSON body")
                return RedirectOutcome(short_code=code, target_url=target, source_signal=RedirectSignal.JSON_BODY)

            logger.info(f"Short code {code} probe gave no target (status {response.status_code})")
        except Exception as e:
            # Any failure in the chain ends in direct navigation
            logger.warning(f"Short code {code} probe failed: {type(e).__name__}: {e}")

        return RedirectOutcome(
            short_code=code,
            target_url=self.fallback_url(code),
            source_signal=RedirectSignal.FALLBACK_DIRECT,
        )

    async def follow(self, short_code: str, navigate: Navigator) -> RedirectOutcome:
        """Resolve and hand the target to the presentation layer's navigator."""
        outcome = await self.resolve(short_code)
        if outcome.target_url:
            result = navigate(outcome.target_url)
            if inspect.isawaitable(result):
                await result
        return outcome

    @staticmethod
    def _from_location(response: httpx.Response) -> str | None:
        if response.status_code not in REDIRECT_STATUSES and not response.is_redirect:
            return None
        location = response.headers.get("location", "").strip()
        if not location:
            return None
        # Relative Locations resolve against the probed URL, as a browser would
        return urljoin(str(response.url), location)

    @staticmethod
    def _from_body(response: httpx.Response) -> str | None:
        if not response.is_success or not response.content:
            return None
        data = response.json()
        if not isinstance(data, dict):
            return None
        for field in BODY_URL_FIELDS:
            value = data.get(field)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None
