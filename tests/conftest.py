"""Pytest configuration and shared fixtures.

Fixtures:
- mock_logger: MagicMock satisfying LoggerProtocol (bind returns itself)
- transmit: coordinator without replication transport
- read_frames: drain queued frames of a closed stream
"""

from collections.abc import AsyncIterator
from unittest.mock import MagicMock

import pytest

from transmit.application.transmit import Transmit
from transmit.infrastructure.sse.stream import Stream


@pytest.fixture
def mock_logger() -> MagicMock:
    """Logger double; bind() returns the same mock so calls stay observable."""
    logger = MagicMock()
    logger.bind.return_value = logger
    return logger


@pytest.fixture
def transmit(mock_logger) -> Transmit:
    """Single-instance coordinator."""
    return Transmit(transport=None, logger=mock_logger, instance_id="instance-a")


async def drain(stream: Stream) -> list[bytes]:
    """Close the stream and return every frame it would have written."""
    stream.close()
    return [frame async for frame in stream.frames()]


async def collect(frames: AsyncIterator[bytes], count: int) -> list[bytes]:
    """Take the first ``count`` frames from an open stream."""
    taken: list[bytes] = []
    async for frame in frames:
        taken.append(frame)
        if len(taken) == count:
            break
    return taken


# Pytest markers for different test types
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line("markers", "api: HTTP tests through the FastAPI app")
