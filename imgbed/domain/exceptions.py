"""Domain exceptions for the image gateway.

Defines domain-level exceptions for the error taxonomy: not found,
unavailable, validation/conflict, and upstream (backend) failure.
These exceptions are independent of infrastructure concerns. The
presentation layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class ImgbedException(Exception):
    """Base exception for all gateway errors.

    All custom exceptions inherit from this class to allow consistent
    error handling and logging. Presentation layer maps these to HTTP
    responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable payload for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(ImgbedException):
    """Raised when input validation fails (bad config blob, unknown batch action)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ConflictException(ImgbedException):
    """Raised when an operation conflicts with existing state.

    Example: deleting a backend that storage locations still reference.
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "CONFLICT", details)


class ResourceNotFoundException(ImgbedException):
    """Raised when a requested resource is not found.

    Also used when the resource exists but belongs to another owner, so
    non-owners cannot probe for existence.
    """

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'image', 'backend').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class DuplicateImageException(ImgbedException):
    """Raised by persistence when (content_hash, owner_id) already exists."""

    def __init__(self, content_hash: str, owner_id: str) -> None:
        super().__init__(
            "Image with identical content already exists for this owner",
            "DUPLICATE_IMAGE",
            {"content_hash": content_hash, "owner_id": owner_id},
        )


class StorageUnavailableException(ImgbedException):
    """Raised when no storage can serve or accept the request.

    Covers: every eligible location failed its health probe, no
    upload-accepting backend is configured or selected, or the upload
    failed on every target backend.
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "STORAGE_UNAVAILABLE", details)


class UpstreamFailureException(ImgbedException):
    """Raised when a specific backend call (upload, delete, probe) fails.

    Never fatal to a multi-backend operation; fan-out callers log it and
    continue with the remaining backends.
    """

    def __init__(
        self,
        message: str,
        backend_kind: str,
        reason: str,
        error_code: str = "UPSTREAM_FAILURE",
        **details: Any,
    ) -> None:
        super().__init__(
            message,
            error_code,
            {"backend_kind": backend_kind, "reason": reason, **details},
        )
        self.backend_kind = backend_kind
        self.reason = reason


class DatabaseNotConfiguredException(ImgbedException):
    """Raised when an operation needs the database but DATABASE_URL is not set."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
