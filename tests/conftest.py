"""Shared test configuration and fixtures."""

from collections.abc import Callable
from typing import Any

import pytest

from release_decision.config import Settings
from release_decision.decision_engine import QualityDecisionEngine
from release_decision.models import (
    Condition,
    ConditionType,
    CustomFormat,
    QualityDefinition,
    QualityProfile,
)
from release_decision.quality_definitions import (
    DEFAULT_QUALITY_DEFINITIONS,
    build_profile,
)
from release_decision.release_parser import ReleaseParser


def create_test_settings(**kwargs: Any) -> Settings:
    """Create test settings with safe defaults and custom overrides.

    Args:
        **kwargs: Settings overrides (e.g., confidence_floor=60)

    Returns:
        Settings object with safe test defaults and any custom overrides
    """
    params: dict[str, Any] = {
        "parse_cache_size": 128,
        "evaluation_workers": 1,
        "log_level": "DEBUG",
    }
    params.update(kwargs)
    return Settings(**params)


@pytest.fixture
def test_settings() -> Settings:
    """Standard test settings."""
    return create_test_settings()


@pytest.fixture
def parser(test_settings: Settings) -> ReleaseParser:
    return ReleaseParser(test_settings)


@pytest.fixture
def definitions() -> tuple[QualityDefinition, ...]:
    return DEFAULT_QUALITY_DEFINITIONS


@pytest.fixture
def web_profile() -> QualityProfile:
    """Profile preferring WEB-DL 1080p over HDTV-1080p, cutoff WEB-DL 1080p."""
    return build_profile(
        10, "WEB-1080p", "WEB-DL 1080p", ["HDTV-1080p", "WEB-DL 1080p"]
    )


@pytest.fixture
def x265_format() -> CustomFormat:
    return CustomFormat(
        id=1,
        name="x265",
        conditions=(Condition(ConditionType.CODEC, r"x265|hevc"),),
    )


@pytest.fixture
def make_engine(
    definitions: tuple[QualityDefinition, ...],
) -> Callable[..., QualityDecisionEngine]:
    """Factory fixture building a decision engine with test settings."""

    def _make(
        formats: tuple[CustomFormat, ...] = (), **settings_overrides: Any
    ) -> QualityDecisionEngine:
        settings = create_test_settings(**settings_overrides)
        return QualityDecisionEngine(definitions, formats, settings.decision_policy())

    return _make
