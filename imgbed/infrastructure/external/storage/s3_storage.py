"""S3-compatible object storage uploader (AWS S3, MinIO, Aliyun OSS, Spaces)."""

from __future__ import annotations

import asyncio
import mimetypes
import posixpath
from pathlib import Path
from typing import Any, BinaryIO
from urllib.parse import urlparse

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from imgbed.application.dtos.upload import UploadResult
from imgbed.domain.enums import BackendKind
from imgbed.infrastructure.exceptions import BackendNetworkError, BackendRejectedError

_MISSING_KEY_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _endpoint_host(endpoint: str) -> str:
    """Return host part of an endpoint given with or without scheme."""
    if not endpoint.startswith(("http://", "https://")):
        endpoint = "https://" + endpoint
    return urlparse(endpoint).netloc or endpoint


class ObjectStoreUploader:
    """Bucket-backed uploader.

    Uses boto3 (sync) via asyncio.to_thread for the async API. The stored
    url is the public object URL; the delete identifier is the object key.
    """

    def __init__(
        self,
        bucket: str,
        endpoint: str | None = None,
        region: str = "us-east-1",
        access_key: str | None = None,
        secret_key: str | None = None,
        public_url: str | None = None,
        upload_path: str = "",
        client: Any = None,
    ) -> None:
        """Initialize S3 client.

        Args:
            bucket: Bucket name.
            endpoint: Custom endpoint (MinIO/OSS); AWS when None.
            region: Region name.
            access_key: Optional; uses env/IAM if not set.
            secret_key: Optional.
            public_url: Custom domain for object URLs.
            upload_path: Key prefix inside the bucket.
            client: Pre-built boto3 client (tests).
        """
        self.bucket = bucket
        self.endpoint = endpoint
        self.region = region
        self.public_url = public_url.rstrip("/") if public_url else None
        self.upload_path = upload_path.strip("/")
        if client is None:
            endpoint_url = None
            if endpoint:
                endpoint_url = endpoint if "://" in endpoint else f"https://{endpoint}"
            extra = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                **extra,
            )
        self._client = client

    @property
    def kind(self) -> str:
        return BackendKind.OBJECT_STORE.value

    def object_key(self, unique_name: str) -> str:
        """Key for unique_name under the configured prefix."""
        if not self.upload_path:
            return unique_name
        return posixpath.join(self.upload_path, unique_name)

    def object_url(self, key: str) -> str:
        """Public URL of key (custom domain, virtual-host endpoint, or AWS default)."""
        if self.public_url:
            return f"{self.public_url}/{key}"
        if self.endpoint:
            return f"https://{self.bucket}.{_endpoint_host(self.endpoint)}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    @staticmethod
    def key_from_url(url: str) -> str:
        """Derive an object key from a stored URL (rows without a delete identifier)."""
        return urlparse(url).path.lstrip("/")

    async def upload(self, stream: BinaryIO, unique_name: str) -> UploadResult:
        """Stream to the bucket with upload_fileobj (multipart for large bodies)."""
        key = self.object_key(unique_name)
        content_type = mimetypes.guess_type(unique_name)[0] or "application/octet-stream"

        def _upload() -> None:
            self._client.upload_fileobj(
                stream,
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )

        try:
            await asyncio.to_thread(_upload)
        except ClientError as e:
            raise BackendRejectedError(
                self.kind, "upload", str(e), _status_code(e)
            ) from e
        except S3UploadFailedError as e:
            raise BackendRejectedError(self.kind, "upload", str(e)) from e
        except BotoCoreError as e:
            raise BackendNetworkError(self.kind, "upload", str(e)) from e
        return UploadResult(url=self.object_url(key), delete_identifier=key)

    async def upload_from_path(self, path: str | Path, unique_name: str) -> UploadResult:
        """Upload a local file."""
        try:
            src = await asyncio.to_thread(open, path, "rb")
        except OSError as e:
            raise BackendRejectedError(self.kind, "upload", f"cannot open {path}: {e}") from e
        with src:
            return await self.upload(src, unique_name)

    async def delete(self, delete_identifier: str) -> None:
        """Delete object by key. Missing keys count as deleted."""
        if not delete_identifier:
            raise BackendRejectedError(self.kind, "delete", "object key is empty")
        key = delete_identifier
        if "://" in key:
            key = self.key_from_url(key)

        def _delete() -> None:
            self._client.delete_object(Bucket=self.bucket, Key=key)

        try:
            await asyncio.to_thread(_delete)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                return
            raise BackendRejectedError(
                self.kind, "delete", str(e), _status_code(e)
            ) from e
        except BotoCoreError as e:
            raise BackendNetworkError(self.kind, "delete", str(e)) from e


def _status_code(error: ClientError) -> int | None:
    return error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
