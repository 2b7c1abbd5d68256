"""
Test bootstrap:
- Make the tests directory importable so tests can use ``helpers``
- Provide a configured client wired to a mock transport
"""
import sys
import pathlib

import pytest

TESTS_DIR = pathlib.Path(__file__).parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from helpers import MockTransport  # noqa: E402

from lookback_client import LookbackApi  # noqa: E402


@pytest.fixture
def transport():
    """Provide a fresh mock transport."""
    return MockTransport()


@pytest.fixture
def api(transport):
    """Provide a client with credentials and workspace set."""
    return (LookbackApi(transport=transport)
            .set_credentials("username", "password")
            .set_workspace("41529001"))


@pytest.fixture
def bare_api(transport):
    """Provide a client with no credentials or workspace."""
    return LookbackApi(transport=transport)
