"""Unit tests for episode identity extraction."""

from datetime import date

import pytest

from release_decision.episode_extractor import (
    extract_absolute_episode,
    extract_batch_markers,
    extract_episode_identity,
    extract_special_type,
)
from release_decision.models import SpecialType
from release_decision.title_normalizer import WorkingTitle


def identity(raw: str) -> dict[str, object]:
    _, fields = extract_episode_identity(WorkingTitle.from_raw(raw))
    return fields


@pytest.mark.parametrize(
    "raw, season, episodes",
    [
        ("Show.S01E05.720p", 1, (5,)),
        ("Show.s3e12", 3, (12,)),
        ("Show.S01E01E02.720p", 1, (1, 2)),
        ("Show.S01E01-E03.720p", 1, (1, 2, 3)),
        ("Show.S01E01-03.720p", 1, (1, 2, 3)),
        ("Show.S01E01E03.720p", 1, (1, 3)),
        ("Show.1x05.HDTV", 1, (5,)),
    ],
)
def test_season_and_episodes(raw: str, season: int, episodes: tuple[int, ...]) -> None:
    """Test SxxEyy, multi-episode and NxMM forms."""
    fields = identity(raw)
    assert fields["season"] == season
    assert fields["episodes"] == episodes


def test_episode_span_is_anchor() -> None:
    working, _ = extract_episode_identity(WorkingTitle.from_raw("Show.S01E05.720p"))
    assert working.first_anchor() == 5


def test_air_date() -> None:
    """Test daily shows get an air date and no season."""
    fields = identity("Show.2024.01.15.720p.WEB")
    assert fields == {"air_date": date(2024, 1, 15)}


def test_invalid_calendar_date_ignored() -> None:
    assert identity("Show.2024.13.45.720p") == {}


def test_season_range_is_batch() -> None:
    assert identity("Show.S01-S03.1080p.BluRay") == {"season": 1, "is_batch": True}
    assert identity("Show.Season.1-3.720p") == {"season": 1, "is_batch": True}


def test_season_pack_has_no_episodes() -> None:
    assert identity("Show.S02.1080p.WEB-DL") == {"season": 2}


def test_anime_range_is_batch() -> None:
    assert identity("[Grp] Show (01-12) [1080p]") == {"is_batch": True}


def test_year_range_is_not_batch() -> None:
    assert identity("Show (2010-2015) [1080p]") == {}


def test_no_identity() -> None:
    """Test a movie title yields no episode fields and no error."""
    assert identity("Movie.Name.2010.1080p.BluRay") == {}
    assert identity("") == {}


def test_absolute_episode_in_fansub_title() -> None:
    _, fields = extract_absolute_episode(WorkingTitle.from_raw("[Grp] Show - 07"))
    assert fields == {"absolute_episode": 7}


def test_absolute_episode_with_version() -> None:
    _, fields = extract_absolute_episode(WorkingTitle.from_raw("[Grp] Show - 07v2"))
    assert fields == {"absolute_episode": 7, "version": 2}


def test_absolute_episode_after_marker() -> None:
    _, fields = extract_absolute_episode(WorkingTitle.from_raw("Show Ep 12"))
    assert fields == {"absolute_episode": 12}


def test_bare_number_without_marker_ignored() -> None:
    """Test a number inside a scene title is not taken as an episode."""
    _, fields = extract_absolute_episode(WorkingTitle.from_raw("Show 07 Something"))
    assert fields == {}


def test_year_like_number_not_absolute() -> None:
    _, fields = extract_absolute_episode(WorkingTitle.from_raw("[Grp] Show - 2010"))
    assert fields == {}


def test_rejected_date_parts_not_absolute() -> None:
    """Test the tail of a date-shaped run that is not a real date is skipped."""
    _, fields = extract_absolute_episode(WorkingTitle.from_raw("Show 2024-13-45"))
    assert fields == {}


def test_absolute_skipped_after_season_episode() -> None:
    working = WorkingTitle.from_raw("[Grp] Show S01E05 - 05")
    working, _ = extract_episode_identity(working)
    _, fields = extract_absolute_episode(working)
    assert fields == {}


def test_special_type() -> None:
    _, fields = extract_special_type(WorkingTitle.from_raw("Show OVA 2"))
    assert fields == {"special_type": SpecialType.OVA}


def test_special_marker_needs_title_before() -> None:
    _, fields = extract_special_type(WorkingTitle.from_raw("OVA Show"))
    assert fields == {}


def test_batch_markers() -> None:
    working = WorkingTitle.from_raw("Show.Complete.Series.720p")
    _, fields = extract_batch_markers(working)
    assert fields == {"is_batch": True}
    _, fields = extract_batch_markers(WorkingTitle.from_raw("Show.S01E01"))
    assert fields == {}
