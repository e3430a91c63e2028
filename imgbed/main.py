"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, routers.
No business logic here (SRP). See imgbed.core.lifespan and imgbed.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and optionally
clear get_settings cache) before importing or calling create_app().
"""

from fastapi import FastAPI

from imgbed.api.router import api_router
from imgbed.core.config import get_settings
from imgbed.core.exception_handlers import register_exception_handlers
from imgbed.core.lifespan import create_lifespan
from imgbed.shared.logging import setup_logging


def create_app(*, with_lifespan: bool = True) -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import).

    with_lifespan=False skips startup wiring (tests attach their own container).
    """
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan if with_lifespan else None,
    )

    register_exception_handlers(app)

    app.include_router(api_router)

    return app


app = create_app()
