"""Infrastructure: persistence (SQLAlchemy)."""
