"""Shared fixtures for homelab_backup tests."""

import io
import uuid

import pytest

from homelab_backup.logger import StructuredLogger


@pytest.fixture
def log_stream() -> io.StringIO:
    """Console sink captured in memory."""
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO):
    """A per-test logger writing only to ``log_stream``."""
    instance = StructuredLogger(name=f"test-{uuid.uuid4().hex[:8]}", stream=log_stream)
    yield instance
    instance.close()
