"""
HTTP request/response logging for debugging backend service calls.

Captures request metadata and JSON payloads using httpx event hooks.
Multipart upload bodies are summarized, never dumped.
"""

from __future__ import annotations

import json

from typing import Any

import httpx

from chloride.utils.logger import logger

SENSITIVE_HEADERS = ("authorization", "cookie", "x-api-key")


class HTTPLogger:
    """Logs HTTP requests and responses for debugging."""

    def __init__(self, enabled: bool = True):
        """Initialize HTTP logger.

        Args:
            enabled: Whether to enable HTTP logging (default: True)
        """
        self.enabled = enabled

    async def log_request(self, request: httpx.Request) -> None:
        """Log outgoing HTTP request.

        Args:
            request: The httpx request object
        """
        if not self.enabled:
            return

        try:
            content_type = request.headers.get("content-type", "")
            if content_type.startswith("application/json") and request.content:
                body: Any = json.loads(request.content.decode("utf-8"))
                # Credentials never reach the log
                if isinstance(body, dict) and "password" in body:
                    body = {**body, "password": "***"}
            elif content_type.startswith("multipart/"):
                body = {"_note": "multipart body not captured"}
            else:
                body = {}

            logger.info(
                f"HTTP Request: {request.method} {request.url}",
                http_request=True,
                method=request.method,
                url=str(request.url),
                headers=self._sanitize_headers(dict(request.headers)),
                payload=body,
            )

        except (ValueError, UnicodeDecodeError, httpx.RequestNotRead) as e:
            logger.error(f"Error logging HTTP request: {e}", exc_info=True)

    async def log_response(self, response: httpx.Response) -> None:
        """Log HTTP response status and redirect target.

        Args:
            response: The httpx response object
        """
        if not self.enabled:
            return

        # No state is kept between the request and response hooks
        request = response.request
        request_data = {"method": request.method, "url": str(request.url)}
        logger.info(
            f"HTTP Response: {response.status_code} {request_data['method']} {request_data['url']}",
            http_response=True,
            status_code=response.status_code,
            location=response.headers.get("location"),
            request=request_data,
        )

    def _sanitize_headers(self, headers: dict[str, str]) -> dict[str, str]:
        """Remove sensitive data from headers.

        Args:
            headers: Original headers dictionary

        Returns:
            Sanitized headers with sensitive values redacted
        """
        sanitized = headers.copy()
        for actual_key, value in headers.items():
            if actual_key.lower() in SENSITIVE_HEADERS:
                # Show last 4 chars only
                sanitized[actual_key] = f"***{value[-4:]}" if len(value) > 4 else "***"
        return sanitized


def create_logging_client(
    enabled: bool = True,
    timeout: httpx.Timeout | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an httpx client with request/response logging.

    Args:
        enabled: Whether to enable HTTP logging
        timeout: Optional timeout configuration (None disables timeouts)
        transport: Optional transport override (tests use httpx.MockTransport)

    Returns:
        Configured httpx.AsyncClient with event hooks
    """
    http_logger = HTTPLogger(enabled=enabled)

    event_hooks: dict[str, list[Any]] = {
        "request": [http_logger.log_request],
        "response": [http_logger.log_response],
    }

    return httpx.AsyncClient(event_hooks=event_hooks, timeout=timeout, transport=transport)
