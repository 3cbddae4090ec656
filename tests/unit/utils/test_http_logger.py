"""Tests for HTTP request/response logging hooks."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from chloride.utils.http_logger import HTTPLogger, create_logging_client


class TestHTTPLogger:
    """Tests for HTTPLogger."""

    @pytest.mark.asyncio
    async def test_disabled_logs_nothing(self) -> None:
        http_logger = HTTPLogger(enabled=False)
        request = httpx.Request("GET", "http://read.test/api/files/my-files")

        with patch("chloride.utils.http_logger.logger") as mock_logger:
            await http_logger.log_request(request)

        mock_logger.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_password_masked_in_payload(self) -> None:
        http_logger = HTTPLogger()
        request = httpx.Request(
            "POST", "http://api.test/api/auth/login", json={"email": "a@b.co", "password": "hunter22"}
        )

        with patch("chloride.utils.http_logger.logger") as mock_logger:
            await http_logger.log_request(request)

        _, kwargs = mock_logger.info.call_args
        assert kwargs["payload"]["password"] == "***"
        assert kwargs["payload"]["email"] == "a@b.co"

    @pytest.mark.asyncio
    async def test_multipart_body_summarized(self) -> None:
        http_logger = HTTPLogger()
        request = httpx.Request(
            "POST", "http://write.test/api/upload/single", files=[("file", ("a.txt", b"secret", "text/plain"))]
        )
        request.read()

        with patch("chloride.utils.http_logger.logger") as mock_logger:
            await http_logger.log_request(request)

        _, kwargs = mock_logger.info.call_args
        assert kwargs["payload"] == {"_note": "multipart body not captured"}

    @pytest.mark.asyncio
    async def test_response_logs_location(self) -> None:
        http_logger = HTTPLogger()
        request = httpx.Request("GET", "http://read.test/abc")
        response = httpx.Response(302, headers={"location": "https://example.com/"}, request=request)

        with patch("chloride.utils.http_logger.logger") as mock_logger:
            await http_logger.log_request(request)
            await http_logger.log_response(response)

        _, kwargs = mock_logger.info.call_args
        assert kwargs["status_code"] == 302
        assert kwargs["location"] == "https://example.com/"
        assert kwargs["request"]["method"] == "GET"

    @pytest.mark.asyncio
    async def test_response_names_request_without_prior_hook(self) -> None:
        http_logger = HTTPLogger()
        request = httpx.Request("POST", "http://write.test/api/upload/single")
        response = httpx.Response(201, request=request)

        with patch("chloride.utils.http_logger.logger") as mock_logger:
            await http_logger.log_response(response)

        _, kwargs = mock_logger.info.call_args
        assert kwargs["request"] == {"method": "POST", "url": "http://write.test/api/upload/single"}

    @pytest.mark.asyncio
    async def test_failed_requests_leave_no_state(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = create_logging_client(transport=httpx.MockTransport(refuse))
        http_logger = client.event_hooks["request"][0].__self__

        try:
            for _ in range(3):
                with pytest.raises(httpx.ConnectError):
                    await client.get("http://read.test/ping")
        finally:
            await client.aclose()

        assert vars(http_logger) == {"enabled": True}

    def test_sanitize_headers(self) -> None:
        sanitized = HTTPLogger()._sanitize_headers({"Authorization": "Bearer abcdef1234", "Accept": "*/*"})

        assert sanitized["Authorization"] == "***1234"
        assert sanitized["Accept"] == "*/*"


class TestCreateLoggingClient:
    @pytest.mark.asyncio
    async def test_hooks_installed_and_transport_used(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(204))
        client = create_logging_client(enabled=False, transport=transport)

        try:
            response = await client.get("http://read.test/ping")
        finally:
            await client.aclose()

        assert response.status_code == 204
        assert len(client.event_hooks["request"]) == 1
        assert len(client.event_hooks["response"]) == 1
