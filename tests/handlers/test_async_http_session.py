import logging
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import aiohttp
import pytest

from handlers.async_comm import AsyncCommError, AsyncCommInvalidContentTypeError, AsyncHttp, HttpResult


class DummyResponse:
    def __init__(self, body: bytes, headers: dict[str, str]) -> None:
        self.headers: dict[str, str] = headers
        self.read = AsyncMock(return_value=body)


def test_session_is_not_created_on_construction() -> None:
    http = AsyncHttp()

    assert http.is_open is False
    with pytest.raises(RuntimeError):
        _ = http.session


@pytest.mark.asyncio
async def test_context_enter_logs_session_initialized(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="TTSReader")
    http = AsyncHttp()
    caplog.clear()

    async with http:
        assert http.is_open is True

    assert any("AsyncHttp session initialized" in rec.message for rec in caplog.records)
    assert not any("session already initialized" in rec.message for rec in caplog.records)
    assert http.is_open is False


@pytest.mark.asyncio
async def test_reenter_after_close_logs_session_initialized(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="TTSReader")

    http = AsyncHttp()

    # first context closes the session
    async with http:
        pass

    # After __aexit__, session should be closed. Re-enter should reinitialize and log.
    caplog.clear()

    async with http:
        pass

    assert any("AsyncHttp session initialized" in rec.message for rec in caplog.records)


@pytest.mark.asyncio
async def test_decode_response_uses_content_handler_and_keeps_headers() -> None:
    http = AsyncHttp()
    http.add_handler("audio/mpeg", bytes)
    resp = DummyResponse(b"ID3data", {"Content-Type": "audio/mpeg", "Request-Id": "req-1"})

    result: HttpResult = await http.decode_response(resp)  # type: ignore[arg-type]

    assert result.data == b"ID3data"
    assert result.content_type == "audio/mpeg"
    assert result.header("request-id") == "req-1"
    assert result.header("REQUEST-ID") == "req-1"


@pytest.mark.asyncio
async def test_decode_response_parses_json_with_charset() -> None:
    http = AsyncHttp()
    resp = DummyResponse(b'{"voices": []}', {"Content-Type": "application/json; charset=utf-8"})

    result: HttpResult = await http.decode_response(resp)  # type: ignore[arg-type]

    assert result.data == {"voices": []}


@pytest.mark.asyncio
async def test_decode_response_empty_body_returns_none() -> None:
    http = AsyncHttp()
    resp = DummyResponse(b"", {"Content-Type": "application/octet-stream"})

    result: HttpResult = await http.decode_response(resp)  # type: ignore[arg-type]

    assert result.data is None


@pytest.mark.asyncio
async def test_decode_response_unknown_content_type_raises() -> None:
    http = AsyncHttp()
    resp = DummyResponse(b"data", {"Content-Type": "application/octet-stream"})

    with pytest.raises(AsyncCommInvalidContentTypeError):
        await http.decode_response(resp)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_post_rejects_json_and_body_together() -> None:
    http = AsyncHttp()

    with pytest.raises(ValueError, match="Only one"):
        await http.post(url="http://localhost", json_data={"a": 1}, body="<speak/>")


@pytest.mark.asyncio
async def test_post_encodes_string_body(monkeypatch: pytest.MonkeyPatch) -> None:
    http = AsyncHttp()
    captured: dict[str, Any] = {}

    async def fake_request(method: str, **kwargs: Any) -> HttpResult:
        captured["method"] = method
        captured.update(kwargs)
        return HttpResult(data=b"audio")

    monkeypatch.setattr(http, "_request", fake_request)

    await http.post(url="http://localhost/v1", body="<speak/>", total_timeout=5.0)

    assert captured["method"] == "POST"
    assert captured["data"] == b"<speak/>"
    assert "json" not in captured


def test_comm_error_without_response_has_no_status() -> None:
    err = AsyncCommError("The server could not be reached.")

    assert err.status is None


def test_comm_error_keeps_status_of_error_response() -> None:
    client_error = aiohttp.ClientResponseError(
        request_info=SimpleNamespace(real_url="http://localhost"),  # type: ignore[arg-type]
        history=(),
        status=401,
    )

    err = AsyncCommError("Error response from the server.", response=client_error)

    assert err.status == 401
    assert "status='401'" in str(err)
