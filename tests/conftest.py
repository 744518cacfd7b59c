"""Pytest configuration and shared fixtures."""

import logging
from collections.abc import Generator

import logfire
import pytest

from chorerota.core.config import Settings


logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def quiet_logfire() -> None:
    """Keep spans local during tests: nothing is exported or printed."""
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway database file."""
    return Settings(sqlite_db_path=str(tmp_path / "chorerota_test.db"), environment="test")


@pytest.fixture
def released_photos() -> Generator[list[str]]:
    """Collects photo references passed to the release hook."""
    released: list[str] = []
    yield released
    logger.debug("Released photos during test: %s", released)


@pytest.fixture
def release_photo(released_photos):
    """Photo release hook that records what it was asked to release."""

    async def _release(photo_path: str) -> None:
        released_photos.append(photo_path)

    return _release
