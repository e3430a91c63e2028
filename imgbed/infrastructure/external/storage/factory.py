"""Uploader factory: builds a live uploader from a backend row."""

from __future__ import annotations

from typing import TYPE_CHECKING

from imgbed.application.dtos.backend import BackendResult
from imgbed.application.interfaces.storage import IUploader
from imgbed.domain.enums import BackendKind
from imgbed.infrastructure.external.storage.config import (
    LocalBackendConfig,
    ObjectStoreBackendConfig,
    ThirdPartyHostBackendConfig,
    parse_backend_config,
    parse_kind,
)

if TYPE_CHECKING:
    import httpx

    from imgbed.core.config import Settings


class UploaderFactory:
    """Factory for uploader instances based on backend kind and config blob."""

    def __init__(
        self,
        settings: "Settings | None" = None,
        http_client: "httpx.AsyncClient | None" = None,
    ) -> None:
        """Args:
            settings: Application settings (timeouts); get_settings() when None.
            http_client: Shared client handed to HTTP-based uploaders.
        """
        from imgbed.core.config import get_settings

        self.settings = settings or get_settings()
        self.http_client = http_client

    def validate(self, kind: str, config: dict) -> str:
        """Check kind and config blob; return the canonical kind tag.

        Raises:
            ValidationException: Unknown kind or config that does not parse.
        """
        backend_kind = parse_kind(kind)
        parse_backend_config(backend_kind.value, config)
        return backend_kind.value

    def create(self, backend: BackendResult) -> IUploader:
        """Create uploader for backend.

        Raises:
            ValidationException: Unknown kind or config that does not parse.
        """
        kind = parse_kind(backend.kind)
        config = parse_backend_config(kind.value, backend.config)

        if kind is BackendKind.LOCAL:
            from imgbed.infrastructure.external.storage.local_storage import (
                LocalUploader,
            )

            assert isinstance(config, LocalBackendConfig)
            return LocalUploader(
                storage_root=config.storage_path,
                public_url=config.public_url,
            )
        if kind is BackendKind.OBJECT_STORE:
            from imgbed.infrastructure.external.storage.s3_storage import (
                ObjectStoreUploader,
            )

            assert isinstance(config, ObjectStoreBackendConfig)
            return ObjectStoreUploader(
                bucket=config.bucket,
                endpoint=config.endpoint,
                region=config.region,
                access_key=config.access_key_id,
                secret_key=(
                    config.access_key_secret.get_secret_value()
                    if config.access_key_secret
                    else None
                ),
                public_url=config.public_url,
                upload_path=config.upload_path,
            )
        from imgbed.infrastructure.external.storage.third_party_host import (
            ThirdPartyHostUploader,
        )

        assert isinstance(config, ThirdPartyHostBackendConfig)
        return ThirdPartyHostUploader(
            base_url=config.base_url,
            token=config.token.get_secret_value(),
            client=self.http_client,
            upload_timeout=self.settings.upload_api_timeout_seconds,
            delete_timeout=self.settings.delete_api_timeout_seconds,
        )
