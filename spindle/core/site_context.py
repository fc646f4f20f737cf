"""Site context for RLS (row-level security).

The hosting HTTP layer sets the current site_id in this context variable so
that get_db / get_db_transactional can run SET LOCAL app.current_site_id on
the session. Engine services never read it; they receive site_id explicitly.
"""

from contextvars import ContextVar

# Current site ID for the request (set by the host, read by DB session setup).
current_site_id: ContextVar[str | None] = ContextVar("current_site_id", default=None)


def set_site_id(site_id: str | None) -> None:
    """Set the current site ID for this context (e.g. request)."""
    current_site_id.set(site_id)


def get_site_id() -> str | None:
    """Return the current site ID if set."""
    return current_site_id.get()
