"""Per-kind backend configuration models.

The backend row stores configuration as a JSON blob; these models turn
it into typed settings. Keys written by earlier releases in camelCase
(storagePath, publicUrl, accessKeyId, baseURL, ...) are accepted as aliases.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from imgbed.domain.enums import BackendKind
from imgbed.domain.exceptions import ValidationException


class _BackendConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class LocalBackendConfig(_BackendConfig):
    """Local filesystem: objects live under storage_path."""

    storage_path: str = Field(alias="storagePath", min_length=1)
    # Used by the serving layer to compose absolute URLs; never stored on rows.
    public_url: str | None = Field(default=None, alias="publicUrl")


class ObjectStoreBackendConfig(_BackendConfig):
    """S3-compatible bucket (AWS S3, MinIO, Aliyun OSS in S3 mode)."""

    bucket: str = Field(min_length=1)
    endpoint: str | None = None
    region: str = "us-east-1"
    access_key_id: str | None = Field(default=None, alias="accessKeyId")
    access_key_secret: SecretStr | None = Field(default=None, alias="accessKeySecret")
    public_url: str | None = Field(default=None, alias="publicUrl")
    upload_path: str = Field(default="", alias="uploadPath")


class ThirdPartyHostBackendConfig(_BackendConfig):
    """SM.MS-style image hosting API (token auth, multipart upload, delete by hash)."""

    base_url: str = Field(default="https://sm.ms/api/v2/", alias="baseURL", min_length=1)
    token: SecretStr


CONFIG_MODELS: dict[BackendKind, type[_BackendConfig]] = {
    BackendKind.LOCAL: LocalBackendConfig,
    BackendKind.OBJECT_STORE: ObjectStoreBackendConfig,
    BackendKind.THIRD_PARTY_HOST: ThirdPartyHostBackendConfig,
}


def parse_kind(kind: str) -> BackendKind:
    """Return BackendKind or raise ValidationException for unknown tags."""
    try:
        return BackendKind.parse(kind)
    except ValueError as e:
        raise ValidationException(
            f"Unsupported backend kind: {kind!r}. Supported: {', '.join(BackendKind.values())}",
            field="kind",
        ) from e


def parse_backend_config(kind: str, raw: Any) -> _BackendConfig:
    """Validate a config blob for kind.

    Raises:
        ValidationException: unknown kind, blob not an object, or missing/invalid keys.
    """
    backend_kind = parse_kind(kind)
    if not isinstance(raw, dict):
        raise ValidationException("Backend config must be a JSON object", field="config")
    try:
        return CONFIG_MODELS[backend_kind].model_validate(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationException(
            f"Invalid {backend_kind.value} backend config: {problems}",
            field="config",
        ) from e
