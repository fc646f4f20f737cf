"""Persistence: engine, sessions, ORM models, repositories and migrations."""
