"""Unit tests for audio extraction."""

import pytest

from release_decision.audio_extractor import extract_audio
from release_decision.models import AudioCodec, AudioInfo
from release_decision.title_normalizer import WorkingTitle


def audio_of(raw: str) -> AudioInfo | None:
    _, fields = extract_audio(WorkingTitle.from_raw(raw))
    audio = fields.get("audio")
    assert audio is None or isinstance(audio, AudioInfo)
    return audio


@pytest.mark.parametrize(
    "raw, expected",
    [
        (
            "Show.S01E01.1080p.WEB-DL.DDP5.1.Atmos.H.264-GRP",
            AudioInfo(AudioCodec.EAC3, "5.1", atmos=True),
        ),
        ("Show.S01E01.720p.WEB.AAC2.0.x264-GRP", AudioInfo(AudioCodec.AAC, "2.0")),
        ("Movie.2019.1080p.BluRay.TrueHD.7.1-GRP", AudioInfo(AudioCodec.TRUEHD, "7.1")),
        (
            "Movie.2019.1080p.BluRay.DTS-HD.MA.5.1-GRP",
            AudioInfo(AudioCodec.DTS_HD, "5.1"),
        ),
        ("Movie.2019.1080p.BluRay.DTS-X-GRP", AudioInfo(AudioCodec.DTS_X)),
        ("Movie.2019.1080p.WEB.AC3.6ch-GRP", AudioInfo(AudioCodec.AC3, "5.1")),
        ("Movie.2019.1080p.BluRay.FLAC-GRP", AudioInfo(AudioCodec.FLAC)),
    ],
)
def test_audio(raw: str, expected: AudioInfo) -> None:
    assert audio_of(raw) == expected


def test_dts_before_x264_is_plain_dts() -> None:
    """Test DTS followed by an x264 codec token is not DTS-X."""
    assert audio_of("Movie.1080p.DTS.x264-GRP") == AudioInfo(AudioCodec.DTS)


def test_no_audio() -> None:
    assert audio_of("Show.S01E01.720p.HDTV.x264-GRP") is None


def test_audio_words_in_title_ignored() -> None:
    """Test codec names before the first anchor belong to the title."""
    working = WorkingTitle.from_raw("Opus.S01E01.720p")
    working = working.consume(5, 11, "episode", anchor=True)
    _, fields = extract_audio(working)
    assert fields == {}
