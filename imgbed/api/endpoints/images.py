"""Image serving: healthy-location resolution and the random image redirect.

Local copies are streamed from disk; every other kind is answered with a
302 to the stored URL. Not found maps to 404 and unreachable to 503
through the registered exception handlers.
"""

import logging
from pathlib import PurePosixPath

from fastapi import APIRouter
from fastapi.responses import FileResponse, RedirectResponse, Response

from imgbed.api.dependencies import (
    BackendRegistryDep,
    ImageQueryServiceDep,
    ResolutionServiceDep,
)
from imgbed.domain.enums import BackendKind
from imgbed.domain.exceptions import StorageUnavailableException

logger = logging.getLogger(__name__)

router = APIRouter()

RANDOM_IMAGE_EXTENSION = ".jpg"


@router.get("/image/{filename}")
async def serve_image(
    filename: str,
    resolution: ResolutionServiceDep,
    registry: BackendRegistryDep,
) -> Response:
    """Serve /image/{id}.{ext}; the extension is cosmetic."""
    image_id = PurePosixPath(filename).stem
    location = await resolution.get_healthy_location(image_id)

    if location.storage_kind == BackendKind.LOCAL.value:
        path = registry.local_path(location.backend_id, location.url)
        if path is None:
            raise StorageUnavailableException(
                "Local backend is not loaded", backend_id=location.backend_id
            )
        return FileResponse(path)
    return RedirectResponse(location.url, status_code=302)


@router.get("/random")
def random_image(queries: ImageQueryServiceDep) -> RedirectResponse:
    """Redirect to a random eligible image (404 when the pool is empty)."""
    image_id = queries.get_random_eligible_image_id()
    return RedirectResponse(
        f"/image/{image_id}{RANDOM_IMAGE_EXTENSION}", status_code=302
    )
