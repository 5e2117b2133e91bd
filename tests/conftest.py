"""Root pytest configuration for bootfetch tests."""
import hashlib

import pytest

from bootfetch.models import FetchTarget
from bootfetch.settings import Settings

from .fakes.fake_connection import FakeNetwork
from .helpers.responses import HOST, http_response



# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (uses a loopback socket server)"
    )


# Keep real environment settings out of tests
@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove any BOOTFETCH_* variables from the environment."""
    import os
    for key in list(os.environ):
        if key.startswith("BOOTFETCH_"):
            monkeypatch.delenv(key)


@pytest.fixture
def payload():
    """Deterministic binary payload spanning several read buffers."""
    return bytes(range(256)) * 700 + b"\x00tail"


@pytest.fixture
def payload_digest(payload):
    """SHA-512 hex digest of the payload."""
    return hashlib.sha512(payload).hexdigest()


@pytest.fixture
def network():
    """Fake network with no routes."""
    return FakeNetwork()


@pytest.fixture
def served(network, payload):
    """Fake network serving the payload from HOST."""
    network.serve(HOST, http_response(payload))
    return network


@pytest.fixture
def target(tmp_path, payload_digest):
    """Fetch target for the payload, promoted to tmp_path/stage."""
    return FetchTarget(
        host=HOST,
        expected_digest=payload_digest,
        final_path=str(tmp_path / "stage"),
    )


@pytest.fixture
def settings(tmp_path, payload_digest):
    """Standard test settings."""
    return Settings(
        host=HOST,
        expected_digest=payload_digest,
        output=str(tmp_path / "stage"),
    )
