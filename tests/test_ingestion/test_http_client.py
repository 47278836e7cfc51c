"""Tests for HTTP client infrastructure layer."""

import httpx
import pytest
import respx

from user_aggregator.ingestion.http_client import (
    HTTPClient,
    HTTPClientError,
    InvalidPayloadError,
)

URL = "https://api.example.com/users"


class TestHTTPClient:
    """Tests for HTTPClient."""

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        """Should raise if used outside async context manager."""
        client = HTTPClient()

        with pytest.raises(RuntimeError, match="async context manager"):
            await client.get(URL)

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_json_array(self):
        """Should return a parsed JSON array."""
        respx.get(URL).mock(return_value=httpx.Response(200, json=[{"id": 1}]))

        async with HTTPClient() as client:
            payload = await client.get_json(URL)

        assert payload == [{"id": 1}]

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_json_object(self):
        """Should return a parsed JSON object."""
        respx.get(URL).mock(return_value=httpx.Response(200, json={"data": []}))

        async with HTTPClient() as client:
            payload = await client.get_json(URL)

        assert payload == {"data": []}

    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_user_agent(self):
        """Should send the configured User-Agent and no auth header."""
        route = respx.get(URL).mock(return_value=httpx.Response(200, json=[]))

        async with HTTPClient(user_agent="user-aggregator/test") as client:
            await client.get_json(URL)

        request = route.calls.last.request
        assert request.headers["User-Agent"] == "user-aggregator/test"
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_not_retried(self):
        """Should raise on 500 after a single attempt."""
        route = respx.get(URL).mock(return_value=httpx.Response(500, text="boom"))

        async with HTTPClient() as client:
            with pytest.raises(HTTPClientError) as exc_info:
                await client.get_json(URL)

        assert route.call_count == 1
        assert exc_info.value.status_code == 500
        assert exc_info.value.response_body == "boom"
        assert "failed with status 500" in str(exc_info.value)

    @pytest.mark.asyncio
    @respx.mock
    async def test_client_error(self):
        """Should raise on 404."""
        respx.get(URL).mock(return_value=httpx.Response(404, text="Not found"))

        async with HTTPClient() as client:
            with pytest.raises(HTTPClientError) as exc_info:
                await client.get_json(URL)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_wrapped(self):
        """Should wrap connection failures in HTTPClientError."""
        respx.get(URL).mock(side_effect=httpx.ConnectError("Connection refused"))

        async with HTTPClient() as client:
            with pytest.raises(HTTPClientError) as exc_info:
                await client.get_json(URL)

        assert exc_info.value.status_code is None
        assert "ConnectError" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_wrapped(self):
        """Should wrap timeouts in HTTPClientError."""
        respx.get(URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        async with HTTPClient(timeout=0.1) as client:
            with pytest.raises(HTTPClientError):
                await client.get_json(URL)

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_json(self):
        """Should raise InvalidPayloadError for non-JSON bodies."""
        respx.get(URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))

        async with HTTPClient() as client:
            with pytest.raises(InvalidPayloadError) as exc_info:
                await client.get_json(URL)

        assert "not valid JSON" in str(exc_info.value)
        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    @respx.mock
    async def test_scalar_json_rejected(self):
        """Should reject a JSON scalar body."""
        respx.get(URL).mock(return_value=httpx.Response(200, json="just a string"))

        async with HTTPClient() as client:
            with pytest.raises(InvalidPayloadError, match="expected an object or array"):
                await client.get_json(URL)

    @pytest.mark.asyncio
    async def test_client_closed_on_exit(self):
        """Should release the underlying client on exit."""
        client = HTTPClient()

        async with client:
            assert client._client is not None

        assert client._client is None

    @pytest.mark.asyncio
    async def test_malformed_url_wrapped(self):
        """Should wrap URLs httpx cannot send in HTTPClientError."""
        async with HTTPClient() as client:
            with pytest.raises(HTTPClientError):
                await client.get_json("not-a-url")
