"""Audio extraction: codec, channel layout and the Atmos flag."""

import re

from release_decision.models import AudioCodec, AudioInfo
from release_decision.title_normalizer import (
    ExtractedFields,
    VocabularyEntry,
    WorkingTitle,
    find_earliest,
)


def _audio_pattern(pattern: str) -> re.Pattern[str]:
    # Digits may follow directly, as in DDP5.1 or AAC2.0
    return re.compile(rf"(?<![a-z0-9])(?:{pattern})(?![a-z])")


AUDIO_CODEC_VOCABULARY: tuple[VocabularyEntry[AudioCodec], ...] = (
    VocabularyEntry(_audio_pattern(r"true ?hd"), AudioCodec.TRUEHD),
    VocabularyEntry(_audio_pattern(r"dts[ -]?hd(?:[ -]?ma)?"), AudioCodec.DTS_HD),
    VocabularyEntry(
        re.compile(r"(?<![a-z0-9])dts[ -]?x(?![a-z0-9])"), AudioCodec.DTS_X
    ),
    VocabularyEntry(_audio_pattern(r"dts"), AudioCodec.DTS),
    VocabularyEntry(
        re.compile(r"(?<![a-z0-9])(?:ddp|dd\+|eac3|e-ac-3)(?![a-z])"),
        AudioCodec.EAC3,
    ),
    VocabularyEntry(_audio_pattern(r"dd|ac3|ac-3"), AudioCodec.AC3),
    VocabularyEntry(_audio_pattern(r"aac"), AudioCodec.AAC),
    VocabularyEntry(_audio_pattern(r"flac"), AudioCodec.FLAC),
    VocabularyEntry(_audio_pattern(r"mp3"), AudioCodec.MP3),
    VocabularyEntry(_audio_pattern(r"opus"), AudioCodec.OPUS),
    VocabularyEntry(_audio_pattern(r"l?pcm"), AudioCodec.PCM),
)

CHANNELS_RE = re.compile(r"(?<!\d)([1-9])\.([01])(?!\d)")
CHANNEL_COUNT_RE = re.compile(r"(?<![a-z0-9])([268])ch(?![a-z0-9])")
ATMOS_RE = re.compile(r"(?<![a-z0-9])atmos(?![a-z0-9])")

_CHANNEL_COUNTS = {"2": "2.0", "6": "5.1", "8": "7.1"}


def extract_audio(working: WorkingTitle) -> tuple[WorkingTitle, ExtractedFields]:
    """Extract the earliest audio codec, channel layout and Atmos marker.

    Only text from the first anchor onward is searched, so title words are
    never read as audio tokens.
    """
    start_at = working.first_anchor() or 0
    codec = None
    found = find_earliest(working, AUDIO_CODEC_VOCABULARY, start_at=start_at)
    if found is not None:
        match, codec = found
        working = working.consume(*match.span(), "audio_codec", anchor=True)

    channels = None
    match = working.search(CHANNELS_RE, start_at=start_at)
    if match is not None:
        channels = f"{match.group(1)}.{match.group(2)}"
        working = working.consume(*match.span(), "audio_channels", anchor=True)
    else:
        match = working.search(CHANNEL_COUNT_RE, start_at=start_at)
        if match is not None:
            channels = _CHANNEL_COUNTS[match.group(1)]
            working = working.consume(*match.span(), "audio_channels", anchor=True)

    atmos = False
    match = working.search(ATMOS_RE, start_at=start_at)
    if match is not None:
        atmos = True
        working = working.consume(*match.span(), "atmos", anchor=True)

    if codec is None and channels is None and not atmos:
        return working, {}
    return working, {"audio": AudioInfo(codec=codec, channels=channels, atmos=atmos)}
