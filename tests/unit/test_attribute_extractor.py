"""Unit tests for group, hash, language, edition and year extraction."""

from release_decision.attribute_extractor import (
    LANGUAGE_NAMES,
    LANGUAGE_VOCABULARY,
    extract_container,
    extract_edition,
    extract_languages,
    extract_release_group,
    extract_release_hash,
    extract_year,
)
from release_decision.title_normalizer import WorkingTitle


def group_of(raw: str) -> str | None:
    _, fields = extract_release_group(WorkingTitle.from_raw(raw))
    group = fields.get("release_group")
    assert group is None or isinstance(group, str)
    return group


def test_container() -> None:
    _, fields = extract_container(WorkingTitle.from_raw("Show.S01E01.mkv"))
    assert fields == {"container": "mkv"}
    _, fields = extract_container(WorkingTitle.from_raw("Show.S01E01"))
    assert fields == {}


def test_release_hash() -> None:
    working = WorkingTitle.from_raw("[Grp] Show - 05 [720p][ABCD1234].mkv")
    working, fields = extract_release_hash(working)
    assert fields == {"release_hash": "ABCD1234"}
    assert not working.is_free(22, 32)


def test_no_release_hash() -> None:
    _, fields = extract_release_hash(WorkingTitle.from_raw("[Grp] Show - 05 [720p]"))
    assert fields == {}


def test_trailing_group() -> None:
    """Test scene titles carry the group after the last dash."""
    assert group_of("Show.S01E01.720p.HDTV.x264-LOL") == "LOL"
    assert group_of("Show.S01E01.720p.WEB-DL.DDP5.1.H.264-NTb") == "NTb"


def test_trailing_group_with_site_tags() -> None:
    assert group_of("Show.S01E01.720p.WEB-DL-NTb [rarbg]") == "NTb"


def test_quality_fragment_is_not_group() -> None:
    """Test the tail of a hyphenated quality word is not taken as a group."""
    assert group_of("Show.S01E01.720p.WEB-DL") is None
    assert group_of("Show.S01E01.1080p.BluRay-1080p") is None


def test_dash_in_title_without_text_before() -> None:
    assert group_of("-Title") is None


def test_fansub_group() -> None:
    assert group_of("[SubsPlease] Attack on Titan - 01 [1080p]") == "SubsPlease"


def test_no_group() -> None:
    assert group_of("Show.S01E01.720p.HDTV") is None
    assert group_of("") is None


def test_languages_after_anchor() -> None:
    working = WorkingTitle.from_raw("Movie 2010 FRENCH GERMAN 1080p")
    working = working.consume(6, 10, "year", anchor=True)
    working, fields = extract_languages(working)
    assert fields == {"languages": frozenset({"fr", "de"})}


def test_language_word_in_title_kept() -> None:
    """Test language words before the first anchor stay in the title."""
    working = WorkingTitle.from_raw("The Italian Job 2003 1080p")
    working = working.consume(16, 20, "year", anchor=True)
    working, fields = extract_languages(working)
    assert fields == {}
    assert working.is_free(4, 11)


def test_languages_need_an_anchor() -> None:
    _, fields = extract_languages(WorkingTitle.from_raw("Movie FRENCH"))
    assert fields == {}


def test_multi_marker_consumed_without_language() -> None:
    working = WorkingTitle.from_raw("Movie 2010 MULTi 1080p")
    working = working.consume(6, 10, "year", anchor=True)
    working, fields = extract_languages(working)
    assert fields == {}
    assert not working.is_free(11, 16)


def test_language_codes_have_names() -> None:
    assert {entry.value for entry in LANGUAGE_VOCABULARY} <= set(LANGUAGE_NAMES)


def test_edition() -> None:
    working = WorkingTitle.from_raw("Movie.2010.Directors.Cut.1080p.BluRay")
    _, fields = extract_edition(working)
    assert fields == {"edition": "Directors Cut"}


def test_edition_needs_title_before() -> None:
    _, fields = extract_edition(WorkingTitle.from_raw("Extended 1080p"))
    assert fields == {}


def test_year_before_quality() -> None:
    working = WorkingTitle.from_raw("Movie Name 2010 1080p")
    working = working.consume(16, 21, "resolution", anchor=True)
    working, fields = extract_year(working)
    assert fields == {"year": 2010}
    assert working.first_anchor() == 11


def test_year_as_title_kept() -> None:
    """Test a title that is itself a year keeps it and the later year wins."""
    working = WorkingTitle.from_raw("2012 2009 1080p")
    working = working.consume(10, 15, "resolution", anchor=True)
    _, fields = extract_year(working)
    assert fields == {"year": 2009}


def test_year_bounded_by_resolution_without_anchor() -> None:
    """Test a year found before quality extraction stops at the resolution."""
    working, fields = extract_year(WorkingTitle.from_raw("Movie 2010 1080p 2012"))
    assert fields == {"year": 2010}
    assert working.first_anchor() == 6


def test_first_year_wins_without_resolution() -> None:
    _, fields = extract_year(WorkingTitle.from_raw("Album 1977 FLAC 2011 Remaster"))
    assert fields == {"year": 1977}


def test_year_after_anchor_ignored() -> None:
    working = WorkingTitle.from_raw("Show S01E01 2010")
    working = working.consume(5, 11, "episode", anchor=True)
    _, fields = extract_year(working)
    assert fields == {}
