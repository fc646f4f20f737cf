"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers. The content
engine itself is used through its services with an explicit session and
site_id.

Settings are loaded inside create_app() so that tests can set env (and
optionally clear the get_settings cache) before calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spindle.api.v1 import api_router
from spindle.core.config import get_settings
from spindle.core.exception_handlers import register_exception_handlers
from spindle.core.lifespan import create_lifespan
from spindle.middleware import SiteContextMiddleware


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)

    # First added = innermost.
    app.add_middleware(SiteContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
