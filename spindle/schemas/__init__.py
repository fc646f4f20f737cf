"""API schemas (pydantic models)."""
