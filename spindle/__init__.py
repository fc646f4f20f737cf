"""Spindle: multi-tenant headless content engine."""
