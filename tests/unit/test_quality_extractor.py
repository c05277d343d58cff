"""Unit tests for video quality extraction."""

from release_decision.episode_extractor import extract_episode_identity
from release_decision.models import (
    Codec,
    HdrFormat,
    Quality,
    QualityModifier,
    Resolution,
    Source,
)
from release_decision.quality_extractor import extract_quality, is_quality_token
from release_decision.title_normalizer import WorkingTitle


def quality_of(raw: str) -> Quality:
    working, _ = extract_episode_identity(WorkingTitle.from_raw(raw))
    _, fields = extract_quality(working)
    quality = fields["quality"]
    assert isinstance(quality, Quality)
    return quality


def test_full_quality() -> None:
    quality = quality_of("Show.S01E01.1080p.WEB-DL.x265.HDR10.REPACK")
    assert quality == Quality(
        resolution=Resolution.R1080P,
        source=Source.WEBDL,
        codec=Codec.X265,
        hdr=HdrFormat.HDR10,
        modifier=QualityModifier.REPACK,
    )


def test_earliest_source_wins() -> None:
    """Test WEB-DL before HDTV resolves to WEB-DL."""
    assert quality_of("Show.WEB-DL.HDTV.720p").source is Source.WEBDL
    assert quality_of("Show.HDTV.WEB-DL.720p").source is Source.TV


def test_unknown_quality_always_present() -> None:
    assert quality_of("Some.Random.Title") == Quality()
    assert quality_of("") == Quality()


def test_title_words_before_episode_ignored() -> None:
    """Test quality words inside the show name are not read as a source."""
    quality = quality_of("The.Web.S01E01.720p.HDTV")
    assert quality.source is Source.TV
    assert quality.resolution is Resolution.R720P


def test_remux_modifier() -> None:
    quality = quality_of("Movie.2020.2160p.BluRay.REMUX.HEVC.DV")
    assert quality.modifier is QualityModifier.REMUX
    assert quality.definition_source is Source.REMUX
    assert quality.hdr is HdrFormat.DOLBY_VISION
    assert quality.codec is Codec.X265


def test_real_needs_upper_case() -> None:
    assert quality_of("Show.S01E01.REAL.PROPER.720p").modifier is QualityModifier.REAL
    assert quality_of("Show.S01E01.real.720p").modifier is None


def test_proper() -> None:
    assert quality_of("Show.S01E01.PROPER.720p.HDTV").modifier is QualityModifier.PROPER


def test_resolution_aliases() -> None:
    assert quality_of("Movie.4K.WEB").resolution is Resolution.R2160P
    assert quality_of("Movie.1920x1080.WEB").resolution is Resolution.R1080P
    assert quality_of("Movie.DVDRip.XviD").source is Source.DVD


def test_is_quality_token() -> None:
    assert is_quality_token("1080p")
    assert is_quality_token("WEB-DL")
    assert is_quality_token("x264")
    assert not is_quality_token("SubsPlease")
    assert not is_quality_token("NTb")
