"""Unit test specific configuration and fixtures."""

from collections.abc import Generator

import pytest

from release_decision.release_parser import parse_release_title


@pytest.fixture(autouse=True)
def clear_parse_cache() -> Generator[None, None, None]:
    """Start every test with an empty module-level parse cache.

    Cache hit assertions would otherwise depend on test order.
    """
    parse_release_title.cache_clear()
    yield
    parse_release_title.cache_clear()
