"""HTTP middleware."""

from spindle.middleware.site_context import SiteContextMiddleware

__all__ = ["SiteContextMiddleware"]
