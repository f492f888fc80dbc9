"""Pytest configuration shared by the whole suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from tests import _ensure_repo_on_path
from wortschatz.settings import get_settings


def pytest_configure(config: pytest.Config) -> None:
    """Hook executed by pytest prior to running any tests."""

    _ensure_repo_on_path()


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    """Drop the cached settings so environment patches take effect per test."""

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
