"""Infrastructure exceptions for backend (storage) operations.

Backend errors extend UpstreamFailureException so fan-out callers can
catch one type and the presentation layer can map them consistently.
Network/transport failures are kept distinct from a backend that
answered but refused the operation.
"""

from imgbed.domain.exceptions import ImgbedException, UpstreamFailureException


class BackendNetworkError(UpstreamFailureException):
    """Transport-level failure: connection refused, DNS, timeout, SDK client error."""

    def __init__(self, backend_kind: str, operation: str, reason: str) -> None:
        super().__init__(
            f"{backend_kind} {operation} failed: network error",
            backend_kind,
            reason,
            "BACKEND_NETWORK_ERROR",
            operation=operation,
        )


class BackendRejectedError(UpstreamFailureException):
    """The backend answered but reported failure (non-2xx status or success=false payload)."""

    def __init__(
        self,
        backend_kind: str,
        operation: str,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            f"{backend_kind} {operation} rejected: {reason}",
            backend_kind,
            reason,
            "BACKEND_REJECTED",
            operation=operation,
            status_code=status_code,
        )
        self.status_code = status_code


class LocalStorageError(UpstreamFailureException):
    """Filesystem failure on a local backend (permissions, disk full)."""

    def __init__(self, operation: str, path: str, reason: str) -> None:
        super().__init__(
            f"local {operation} failed: {path}",
            "local",
            reason,
            "LOCAL_STORAGE_ERROR",
            operation=operation,
            path=path,
        )


class StoragePermissionError(ImgbedException):
    """A relative path resolved outside the configured storage root."""

    def __init__(self, file_path: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {file_path}",
            "STORAGE_PERMISSION_ERROR",
            {"file_path": file_path, "operation": operation},
        )
