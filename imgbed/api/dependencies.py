"""Presentation-layer dependency injection.

Routes read services from the ServiceContainer built by the lifespan
(app.state.container); tests set app.state.container to a container over
fakes or use dependency_overrides.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from imgbed.application.services.random_image_cache import RandomImageCache
from imgbed.application.services.resolution_service import ResolutionService
from imgbed.application.use_cases.images.image_operations import ImageQueryService
from imgbed.core.container import ServiceContainer
from imgbed.domain.exceptions import ImgbedException
from imgbed.infrastructure.external.storage.registry import BackendRegistry


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise ImgbedException(
            "Service is starting up", error_code="SERVICE_UNAVAILABLE"
        )
    return container


ContainerDep = Annotated[ServiceContainer, Depends(get_container)]


def get_resolution_service(container: ContainerDep) -> ResolutionService:
    return container.resolution


def get_image_query_service(container: ContainerDep) -> ImageQueryService:
    return container.queries


def get_backend_registry(container: ContainerDep) -> BackendRegistry:
    return container.registry


def get_random_cache(container: ContainerDep) -> RandomImageCache:
    return container.random_cache


ResolutionServiceDep = Annotated[ResolutionService, Depends(get_resolution_service)]
ImageQueryServiceDep = Annotated[ImageQueryService, Depends(get_image_query_service)]
BackendRegistryDep = Annotated[BackendRegistry, Depends(get_backend_registry)]
RandomCacheDep = Annotated[RandomImageCache, Depends(get_random_cache)]
