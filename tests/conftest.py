"""Pytest configuration and fixtures for json-typegen tests."""

import pytest

from json_typegen.inference import CancellationToken, TypeBuilder


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: Tests that drive the CLI or MCP server end to end")
    config.addinivalue_line("markers", "slow: Tests that take longer to run")


class CountingToken(CancellationToken):
    """Counts checkpoints and cancels itself when `cancel_at` is reached."""

    def __init__(self, cancel_at: int | None = None) -> None:
        super().__init__()
        self.checks = 0
        self.cancel_at = cancel_at

    def raise_if_cancelled(self) -> None:
        if self.cancel_at is not None and self.checks == self.cancel_at:
            self.cancel("cancelled by test")
        self.checks += 1
        super().raise_if_cancelled()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def build():
    """Build an object type from a decoded JSON object."""

    def _build(value: dict, name: str = "Root", depth: int = 0):
        return TypeBuilder().build_object(value, name, depth)

    return _build


@pytest.fixture
def counting_token():
    """Factory for tokens that cancel at a given checkpoint index."""
    return CountingToken
