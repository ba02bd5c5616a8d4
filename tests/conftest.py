"""Pytest configuration and fixtures."""

import pytest

from core.security.session import CookieSessionStore
from terabox.data.selectors import UploadSelectors
from terabox.data.upload import UploadTimeouts


@pytest.fixture
def selectors():
    return UploadSelectors()


@pytest.fixture
def fast_timeouts():
    """Millisecond-scale waits so stall scenarios finish quickly."""
    return UploadTimeouts(
        file_input=10,
        selector=10,
        completion=60,
        poll_interval=1,
        row_settle=5,
    )


@pytest.fixture
def session_path(tmp_path):
    return tmp_path / "session" / "terabox_cookies.json"


@pytest.fixture
def session_store(session_path):
    return CookieSessionStore(str(session_path))


@pytest.fixture
def spool_dir(tmp_path):
    path = tmp_path / "spool"
    path.mkdir()
    return path
