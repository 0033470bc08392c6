"""Shared fixtures for relocator tests."""

from unittest.mock import AsyncMock

import pytest

from relocator.dom.snapshot import SnapshotDOM
from relocator.geometry import BoundingBox
from relocator.locators.models import FindOptions


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "smoke: mark test as smoke test (fast, critical path - included in CI)"
    )


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture
def fake_clock():
    """Clock for deterministic timing assertions."""
    return FakeClock()


@pytest.fixture
def make_dom():
    """Build a SnapshotDOM from HTML body markup and a layout map."""

    def _make(body: str, layout=None, default_rect=None, frames=None, head: str = "") -> SnapshotDOM:
        html = f"<html><head>{head}</head><body>{body}</body></html>"
        return SnapshotDOM.from_html(
            html,
            layout={k: BoundingBox(*v) if isinstance(v, tuple) else v for k, v in (layout or {}).items()},
            default_rect=default_rect if default_rect is not None else BoundingBox(0, 0, 100, 20),
            frames=frames,
        )

    return _make


@pytest.fixture
def fast_options():
    """Find options that never wait."""
    return FindOptions(timeout_ms=50, retry_interval_ms=1, max_retries=2)


@pytest.fixture
def mock_action():
    """Action primitive that always succeeds."""
    return AsyncMock(return_value=True)
