"""Backend administration use cases."""

from imgbed.application.use_cases.backends.backend_operations import (
    BackendAdminService,
)

__all__ = ["BackendAdminService"]
