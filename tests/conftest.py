"""Root pytest configuration for mindevc tests."""
from __future__ import annotations

import logging

import pytest

from mindevc.downloader import ContentAddressedDownloader
from mindevc.extractor import ArchiveExtractor
from mindevc.pipeline import ToolPipeline
from mindevc.settings import Settings

from .fakes.fake_http import FakeHttpServer


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


@pytest.fixture(autouse=True)
def test_env(monkeypatch, tmp_path):
    """Keep the host environment and home directory out of tests."""
    for key in ("MINDEVC_CONFIG", "MINDEVC_CACHE_DIR", "MINDEVC_HTTP_TIMEOUT", "MINDEVC_USER_AGENT"):
        monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)

    # The CLI reconfigures the package logger; restore it for caplog
    pkg_logger = logging.getLogger("mindevc")
    saved = (list(pkg_logger.handlers), pkg_logger.level, pkg_logger.propagate)
    yield
    pkg_logger.handlers[:] = saved[0]
    pkg_logger.setLevel(saved[1])
    pkg_logger.propagate = saved[2]


@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(http_timeout_s=5.0)


@pytest.fixture
def http():
    """In-memory HTTP server."""
    return FakeHttpServer()


@pytest.fixture
def downloader(settings, http):
    """Downloader wired to the fake HTTP server."""
    client = http.client()
    with ContentAddressedDownloader(settings, client=client) as d:
        yield d
    client.close()


@pytest.fixture
def extractor():
    return ArchiveExtractor()


@pytest.fixture
def cache_dir(tmp_path):
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def download_dir(cache_dir):
    path = cache_dir / "tools" / "_download"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def test_logger():
    logger = logging.getLogger("mindevc.tests")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def pipeline(downloader, test_logger):
    return ToolPipeline(downloader, logger=test_logger)
