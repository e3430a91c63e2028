"""Third-party image host uploader (SM.MS API v2 and compatible services).

Uploads are multipart POSTs authenticated with an API token. The provider
returns the public URL plus a deletion hash; the hash is the delete
identifier. All HTTP calls use httpx.AsyncClient with a fixed timeout.
"""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path
from typing import Any, BinaryIO

import httpx

from imgbed.application.dtos.upload import UploadResult
from imgbed.domain.enums import BackendKind
from imgbed.infrastructure.exceptions import BackendNetworkError, BackendRejectedError

# Provider messages meaning "nothing to delete"; treated as success.
_ALREADY_GONE_MARKERS = ("already deleted", "not found", "not exist")


class ThirdPartyHostUploader:
    """Token-authenticated image hosting API client."""

    def __init__(
        self,
        base_url: str,
        token: str,
        client: httpx.AsyncClient | None = None,
        upload_timeout: float = 30.0,
        delete_timeout: float = 10.0,
    ) -> None:
        """Initialize.

        Args:
            base_url: API root ending in '/', e.g. https://sm.ms/api/v2/.
            token: API token sent in the Authorization header.
            client: Shared client (connection reuse); one is created per call when None.
            upload_timeout: Seconds for upload calls.
            delete_timeout: Seconds for delete and profile calls.
        """
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.token = token
        self._client = client
        self.upload_timeout = upload_timeout
        self.delete_timeout = delete_timeout

    @property
    def kind(self) -> str:
        return BackendKind.THIRD_PARTY_HOST.value

    async def _send(
        self, method: str, path: str, operation: str, timeout: float, **kwargs: Any
    ) -> httpx.Response:
        url = self.base_url + path
        headers = {"Authorization": self.token}
        try:
            if self._client is not None:
                return await self._client.request(
                    method, url, headers=headers, timeout=timeout, **kwargs
                )
            async with httpx.AsyncClient(timeout=timeout) as client:
                return await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise BackendNetworkError(self.kind, operation, str(e)) from e

    def _payload(self, resp: httpx.Response, operation: str) -> dict[str, Any]:
        """Decode JSON body; non-200 or non-object bodies are rejections."""
        if resp.status_code != 200:
            raise BackendRejectedError(
                self.kind, operation, resp.text[:200] or resp.reason_phrase, resp.status_code
            )
        try:
            payload = resp.json()
        except ValueError as e:
            raise BackendRejectedError(
                self.kind, operation, "response is not JSON", resp.status_code
            ) from e
        if not isinstance(payload, dict):
            raise BackendRejectedError(
                self.kind, operation, "response is not a JSON object", resp.status_code
            )
        return payload

    async def upload(self, stream: BinaryIO, unique_name: str) -> UploadResult:
        """POST the file as form field 'smfile'."""
        content_type = mimetypes.guess_type(unique_name)[0] or "application/octet-stream"
        resp = await self._send(
            "POST",
            "upload",
            "upload",
            self.upload_timeout,
            files={"smfile": (unique_name, stream, content_type)},
        )
        payload = self._payload(resp, "upload")
        if not payload.get("success"):
            message = payload.get("message") or "unknown upload error"
            raise BackendRejectedError(self.kind, "upload", str(message), resp.status_code)
        data = payload.get("data")
        if not isinstance(data, dict) or not isinstance(data.get("url"), str):
            raise BackendRejectedError(
                self.kind, "upload", "response 'data.url' missing or invalid", resp.status_code
            )
        delete_hash = data.get("hash")
        return UploadResult(
            url=data["url"],
            delete_identifier=delete_hash if isinstance(delete_hash, str) and delete_hash else None,
        )

    async def upload_from_path(self, path: str | Path, unique_name: str) -> UploadResult:
        try:
            src = await asyncio.to_thread(open, path, "rb")
        except OSError as e:
            raise BackendRejectedError(self.kind, "upload", f"cannot open {path}: {e}") from e
        with src:
            return await self.upload(src, unique_name)

    async def delete(self, delete_identifier: str) -> None:
        """GET delete/<hash>. 'Already deleted' answers count as success."""
        if not delete_identifier:
            raise BackendRejectedError(self.kind, "delete", "delete hash is empty")
        resp = await self._send(
            "GET", f"delete/{delete_identifier}", "delete", self.delete_timeout
        )
        if resp.status_code == 404:
            return
        payload = self._payload(resp, "delete")
        if payload.get("success"):
            return
        message = str(payload.get("message") or "unknown delete error")
        if any(marker in message.lower() for marker in _ALREADY_GONE_MARKERS):
            return
        raise BackendRejectedError(self.kind, "delete", message, resp.status_code)

    async def verify_token(self) -> dict[str, Any]:
        """Check the token against the profile endpoint; returns the profile data."""
        resp = await self._send("POST", "profile", "verify_token", self.delete_timeout)
        payload = self._payload(resp, "verify_token")
        if not payload.get("success"):
            message = payload.get("message") or "unknown token verification error"
            raise BackendRejectedError(self.kind, "verify_token", str(message), resp.status_code)
        data = payload.get("data")
        return data if isinstance(data, dict) else {}
