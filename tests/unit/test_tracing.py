"""Tests for the @traced decorator and the TELEMETRY_ENABLED switch."""

import pytest
from opentelemetry import trace

from spindle.core.config import Settings
from spindle.shared.telemetry import tracing
from spindle.shared.telemetry.tracing import traced


class _CountingTracer:
    def __init__(self) -> None:
        self.spans: list[str] = []
        self._inner = trace.NoOpTracer()

    def start_as_current_span(self, name: str, **kwargs):
        self.spans.append(name)
        return self._inner.start_as_current_span(name, **kwargs)


@pytest.fixture
def tracer(monkeypatch: pytest.MonkeyPatch) -> _CountingTracer:
    counting = _CountingTracer()
    monkeypatch.setattr(tracing.trace, "get_tracer", lambda *_a, **_k: counting)
    return counting


def _use_settings(monkeypatch: pytest.MonkeyPatch, enabled: bool) -> None:
    settings = Settings(database_url="", telemetry_enabled=enabled)
    monkeypatch.setattr(tracing, "get_settings", lambda: settings)


@traced("test.add")
def _add(a: int, b: int) -> int:
    return a + b


@traced("test.fetch")
async def _fetch(slug: str) -> str:
    return slug.upper()


@traced("test.fail")
def _fail() -> None:
    raise RuntimeError("boom")


class TestTracedEnabled:
    def test_sync_opens_span(self, monkeypatch, tracer):
        _use_settings(monkeypatch, True)
        assert _add(2, 3) == 5
        assert tracer.spans == ["test.add"]

    async def test_async_opens_span(self, monkeypatch, tracer):
        _use_settings(monkeypatch, True)
        assert await _fetch(slug="hello") == "HELLO"
        assert tracer.spans == ["test.fetch"]

    def test_exceptions_propagate(self, monkeypatch, tracer):
        _use_settings(monkeypatch, True)
        with pytest.raises(RuntimeError, match="boom"):
            _fail()
        assert tracer.spans == ["test.fail"]


class TestTracedDisabled:
    def test_sync_runs_without_span(self, monkeypatch, tracer):
        _use_settings(monkeypatch, False)
        assert _add(2, 3) == 5
        assert tracer.spans == []

    async def test_async_runs_without_span(self, monkeypatch, tracer):
        _use_settings(monkeypatch, False)
        assert await _fetch(slug="hello") == "HELLO"
        assert tracer.spans == []

    def test_exceptions_still_propagate(self, monkeypatch, tracer):
        _use_settings(monkeypatch, False)
        with pytest.raises(RuntimeError, match="boom"):
            _fail()
        assert tracer.spans == []
