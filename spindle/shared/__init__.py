"""Shared cross-cutting code: utilities and telemetry."""
