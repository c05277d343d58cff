"""Video quality extraction: resolution, source, codec, HDR and modifiers."""

import re
from collections.abc import Sequence
from typing import Any

from release_decision.models import (
    Codec,
    HdrFormat,
    Quality,
    QualityModifier,
    Resolution,
    Source,
)
from release_decision.title_normalizer import (
    ExtractedFields,
    VocabularyEntry,
    WorkingTitle,
    find_earliest,
    token_pattern,
)

RESOLUTION_VOCABULARY: tuple[VocabularyEntry[Resolution], ...] = (
    VocabularyEntry(token_pattern(r"2160p|4k|uhd|3840x2160"), Resolution.R2160P),
    VocabularyEntry(token_pattern(r"1080[pi]|1920x1080"), Resolution.R1080P),
    VocabularyEntry(token_pattern(r"720p|1280x720"), Resolution.R720P),
    VocabularyEntry(token_pattern(r"576[pi]"), Resolution.R576P),
    VocabularyEntry(token_pattern(r"480[pi]|640x480|848x480"), Resolution.R480P),
    VocabularyEntry(token_pattern(r"360p"), Resolution.R360P),
)

SOURCE_VOCABULARY: tuple[VocabularyEntry[Source], ...] = (
    VocabularyEntry(
        token_pattern(r"blu[ -]?ray|bdrip|brrip|bd25|bd50"), Source.BLURAY
    ),
    VocabularyEntry(token_pattern(r"web[ -]?dl|web"), Source.WEBDL),
    VocabularyEntry(token_pattern(r"web[ -]?rip"), Source.WEBRIP),
    VocabularyEntry(token_pattern(r"hdtv|pdtv|sdtv|dsr|tv[ -]?rip"), Source.TV),
    VocabularyEntry(
        token_pattern(r"dvd[ -]?rip|dvd-?r|dvd5|dvd9|dvd"), Source.DVD
    ),
    VocabularyEntry(token_pattern(r"cam|cam[ -]?rip|hdcam"), Source.CAM),
    VocabularyEntry(token_pattern(r"telesync|ts|hdts"), Source.TELESYNC),
    VocabularyEntry(token_pattern(r"telecine|tc|hdtc"), Source.TELECINE),
    VocabularyEntry(token_pattern(r"workprint|wp"), Source.WORKPRINT),
)

CODEC_VOCABULARY: tuple[VocabularyEntry[Codec], ...] = (
    VocabularyEntry(token_pattern(r"[xh] ?264|avc"), Codec.X264),
    VocabularyEntry(token_pattern(r"[xh] ?265|hevc"), Codec.X265),
    VocabularyEntry(token_pattern(r"xvid|divx"), Codec.XVID),
    VocabularyEntry(token_pattern(r"av1"), Codec.AV1),
    VocabularyEntry(token_pattern(r"vp9"), Codec.VP9),
    VocabularyEntry(token_pattern(r"mpeg-?2"), Codec.MPEG2),
)

HDR_VOCABULARY: tuple[VocabularyEntry[HdrFormat], ...] = (
    VocabularyEntry(token_pattern(r"dolby ?vision|dovi|dv"), HdrFormat.DOLBY_VISION),
    VocabularyEntry(
        re.compile(r"(?<![a-z0-9])(?:hdr10\+|hdr10 ?plus)(?![a-z0-9])"),
        HdrFormat.HDR10_PLUS,
    ),
    VocabularyEntry(token_pattern(r"hdr10"), HdrFormat.HDR10),
    VocabularyEntry(token_pattern(r"hdr"), HdrFormat.HDR),
    VocabularyEntry(token_pattern(r"hlg"), HdrFormat.HLG),
)

REMUX_VOCABULARY: tuple[VocabularyEntry[QualityModifier], ...] = (
    VocabularyEntry(token_pattern(r"(?:bd)?remux"), QualityModifier.REMUX),
)

REVISION_VOCABULARY: tuple[VocabularyEntry[QualityModifier], ...] = (
    VocabularyEntry(token_pattern(r"proper"), QualityModifier.PROPER),
    VocabularyEntry(token_pattern(r"repack|rerip"), QualityModifier.REPACK),
)

# REAL is only a modifier in upper case; "Real" is usually part of a title
REAL_VOCABULARY: tuple[VocabularyEntry[QualityModifier], ...] = (
    VocabularyEntry(
        re.compile(r"(?<![A-Za-z0-9])REAL(?![A-Za-z0-9])"), QualityModifier.REAL
    ),
)

_ALL_VOCABULARIES: tuple[Sequence[VocabularyEntry[Any]], ...] = (
    RESOLUTION_VOCABULARY,
    SOURCE_VOCABULARY,
    CODEC_VOCABULARY,
    HDR_VOCABULARY,
    REMUX_VOCABULARY,
    REVISION_VOCABULARY,
)


def is_quality_token(token: str) -> bool:
    """Check whether a whole token is a quality vocabulary word."""
    lowered = token.lower().replace(".", " ").replace("_", " ")
    return any(
        entry.pattern.fullmatch(lowered)
        for vocabulary in _ALL_VOCABULARIES
        for entry in vocabulary
    )


def first_resolution(working: WorkingTitle) -> int | None:
    """Return where the earliest resolution token starts, if any."""
    found = find_earliest(working, RESOLUTION_VOCABULARY)
    return found[0].start() if found is not None else None


def _search_start(working: WorkingTitle) -> int:
    """Quality words are only trusted after the first episode or year anchor.

    This keeps title words such as "The Web" from being read as a source.
    """
    anchor = working.first_anchor()
    return anchor if anchor is not None else 0


def _take(
    working: WorkingTitle,
    vocabulary: Sequence[VocabularyEntry[Any]],
    label: str,
    start_at: int,
    lower: bool = True,
) -> tuple[WorkingTitle, Any]:
    found = find_earliest(working, vocabulary, lower=lower, start_at=start_at)
    if found is None:
        return working, None
    match, value = found
    return working.consume(*match.span(), label, anchor=True), value


def _take_modifier(
    working: WorkingTitle, start_at: int
) -> tuple[WorkingTitle, QualityModifier | None]:
    working, modifier = _take(working, REMUX_VOCABULARY, "remux", start_at)
    if modifier is not None:
        return working, modifier

    revision = find_earliest(working, REVISION_VOCABULARY, start_at=start_at)
    real = find_earliest(working, REAL_VOCABULARY, lower=False, start_at=start_at)
    candidates = [found for found in (revision, real) if found is not None]
    if not candidates:
        return working, None
    match, value = min(candidates, key=lambda found: found[0].start())
    return working.consume(*match.span(), "revision", anchor=True), value


def extract_quality(working: WorkingTitle) -> tuple[WorkingTitle, ExtractedFields]:
    """Extract the first token of each quality category, left to right.

    When two tokens of one category are present, the earliest one in the
    title wins and the other stays unconsumed.

    Args:
        working: Title with the spans consumed by earlier extractors

    Returns:
        Updated working title and a ``quality`` field (always present,
        unknown attributes included)
    """
    start_at = _search_start(working)
    working, resolution = _take(working, RESOLUTION_VOCABULARY, "resolution", start_at)
    working, source = _take(working, SOURCE_VOCABULARY, "source", start_at)
    working, codec = _take(working, CODEC_VOCABULARY, "codec", start_at)
    working, hdr = _take(working, HDR_VOCABULARY, "hdr", start_at)
    working, modifier = _take_modifier(working, start_at)

    quality = Quality(
        resolution=resolution or Resolution.UNKNOWN,
        source=source or Source.UNKNOWN,
        codec=codec,
        hdr=hdr,
        modifier=modifier,
    )
    return working, {"quality": quality}
