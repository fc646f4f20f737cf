"""Site context middleware.

Sets the current site ID from the site header so database sessions can run
SET LOCAL app.current_site_id and row-level policies apply.
"""

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from spindle.core.config import get_settings
from spindle.core.site_context import set_site_id


def _site_id_from_request(request: Request) -> str | None:
    value = request.headers.get(get_settings().site_header_name)
    return value.strip() if value and value.strip() else None


class SiteContextMiddleware(BaseHTTPMiddleware):
    """Set site context from the request header before the route runs."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        set_site_id(_site_id_from_request(request))
        try:
            return await call_next(request)
        finally:
            set_site_id(None)
