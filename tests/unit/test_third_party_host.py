"""Tests for ThirdPartyHostUploader against a mocked HTTP transport."""

import io
import json

import httpx
import pytest

from imgbed.infrastructure.exceptions import BackendNetworkError, BackendRejectedError
from imgbed.infrastructure.external.storage.third_party_host import (
    ThirdPartyHostUploader,
)

BASE_URL = "https://host.example.com/api/v2/"


def _uploader(handler) -> ThirdPartyHostUploader:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ThirdPartyHostUploader(BASE_URL, "secret-token", client=client)


def _json(status: int, payload) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload).encode())


async def test_upload_success_returns_url_and_delete_hash() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = request.content
        return _json(
            200,
            {"success": True, "data": {"url": "https://i.example.com/a.png", "hash": "h123"}},
        )

    result = await _uploader(handler).upload(io.BytesIO(b"png-bytes"), "a.png")
    assert result.url == "https://i.example.com/a.png"
    assert result.delete_identifier == "h123"
    assert seen["url"] == BASE_URL + "upload"
    assert seen["auth"] == "secret-token"
    assert b'name="smfile"' in seen["body"]
    assert b"png-bytes" in seen["body"]


async def test_upload_without_hash_has_no_delete_identifier() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _json(200, {"success": True, "data": {"url": "https://i.example.com/b.png"}})

    result = await _uploader(handler).upload(io.BytesIO(b"x"), "b.png")
    assert result.delete_identifier is None


async def test_upload_success_false_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _json(200, {"success": False, "message": "Image upload repeated limit"})

    with pytest.raises(BackendRejectedError, match="repeated limit"):
        await _uploader(handler).upload(io.BytesIO(b"x"), "c.png")


async def test_upload_non_json_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(BackendRejectedError, match="not JSON"):
        await _uploader(handler).upload(io.BytesIO(b"x"), "d.png")


async def test_upload_missing_url_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _json(200, {"success": True, "data": {}})

    with pytest.raises(BackendRejectedError):
        await _uploader(handler).upload(io.BytesIO(b"x"), "e.png")


async def test_upload_server_error_is_rejected_with_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, content=b"boom")

    with pytest.raises(BackendRejectedError) as exc_info:
        await _uploader(handler).upload(io.BytesIO(b"x"), "f.png")
    assert exc_info.value.status_code == 500


async def test_connect_error_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendNetworkError):
        await _uploader(handler).upload(io.BytesIO(b"x"), "g.png")


async def test_delete_success() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return _json(200, {"success": True})

    await _uploader(handler).delete("h123")
    assert seen["url"] == BASE_URL + "delete/h123"


async def test_delete_already_deleted_is_success() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _json(200, {"success": False, "message": "File already deleted."})

    await _uploader(handler).delete("h123")


async def test_delete_404_is_success() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    await _uploader(handler).delete("h123")


async def test_delete_other_failure_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _json(200, {"success": False, "message": "Token invalid"})

    with pytest.raises(BackendRejectedError, match="Token invalid"):
        await _uploader(handler).delete("h123")


async def test_delete_empty_identifier_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(BackendRejectedError):
        await _uploader(handler).delete("")


async def test_verify_token_returns_profile() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/profile")
        return _json(200, {"success": True, "data": {"username": "alice"}})

    assert await _uploader(handler).verify_token() == {"username": "alice"}


async def test_verify_token_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _json(200, {"success": False, "message": "Unauthorized."})

    with pytest.raises(BackendRejectedError):
        await _uploader(handler).verify_token()


def test_base_url_gets_trailing_slash() -> None:
    uploader = ThirdPartyHostUploader("https://host.example.com/api/v2", "t")
    assert uploader.base_url == "https://host.example.com/api/v2/"
    assert uploader.kind == "third-party-host"
