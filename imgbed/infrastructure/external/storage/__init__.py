"""Storage backends: local filesystem, S3-compatible object store, third-party host.

UploaderFactory builds an uploader from a backend row; BackendRegistry holds
the live instances. Implementations are imported lazily by the factory so
boto3 is only loaded when an object-store backend is configured.

Every implementation satisfies IUploader (upload, upload_from_path, kind,
delete).
"""

from imgbed.infrastructure.external.storage.factory import UploaderFactory
from imgbed.infrastructure.external.storage.registry import BackendRegistry

__all__ = [
    "BackendRegistry",
    "UploaderFactory",
]
