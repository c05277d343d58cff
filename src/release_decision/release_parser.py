"""Parse assembly: runs the extractor pipeline and scores parse confidence."""

import logging
from dataclasses import replace
from functools import lru_cache

from release_decision.attribute_extractor import (
    extract_container,
    extract_edition,
    extract_languages,
    extract_release_group,
    extract_release_hash,
    extract_year,
)
from release_decision.audio_extractor import extract_audio
from release_decision.config import ConfidencePolicy, Settings
from release_decision.episode_extractor import (
    extract_absolute_episode,
    extract_batch_markers,
    extract_episode_identity,
    extract_special_type,
)
from release_decision.models import ParsedRelease, Resolution, Source
from release_decision.quality_extractor import extract_quality
from release_decision.title_normalizer import ExtractedFields, Extractor, WorkingTitle
from release_decision.title_resolver import (
    clean_title,
    count_numeric_tokens,
    resolve_title,
)

logger = logging.getLogger(__name__)

DEFAULT_POLICY = ConfidencePolicy()

# Order is precedence: each extractor only sees text left by the ones before it
PIPELINE: tuple[Extractor, ...] = (
    extract_container,
    extract_release_hash,
    extract_release_group,
    extract_episode_identity,
    extract_year,
    extract_quality,
    extract_audio,
    extract_languages,
    extract_edition,
    extract_absolute_episode,
    extract_special_type,
    extract_batch_markers,
)


def run_pipeline(raw_title: str) -> tuple[WorkingTitle, ExtractedFields]:
    """Thread a title through every extractor and merge their fields."""
    working = WorkingTitle.from_raw(raw_title)
    fields: ExtractedFields = {}
    for extractor in PIPELINE:
        working, extracted = extractor(working)
        fields.update(extracted)
    return working, fields


def score_confidence(
    release: ParsedRelease, numeric_tokens: int, policy: ConfidencePolicy
) -> int:
    """Score how safely a parse can be acted on without confirmation.

    Extracted field groups raise the score; a missing or very short title and
    bare numbers left inside the title lower it. The result is clamped to
    0-100.
    """
    score = policy.base
    if release.has_episode_identity or release.year is not None:
        score += policy.identity_bonus
    quality = release.quality
    if quality.resolution is not Resolution.UNKNOWN or (
        quality.source is not Source.UNKNOWN
    ):
        score += policy.quality_bonus
    if release.release_group:
        score += policy.group_bonus
    if len(release.series_or_artist_title) < 2:
        score -= policy.short_title_penalty
    if numeric_tokens >= 2:
        score -= policy.numeric_penalty
    return max(0, min(100, score))


def parse_title(raw_title: str, policy: ConfidencePolicy) -> ParsedRelease:
    """Parse one raw release title.

    Never raises: unparseable input yields a release with unset fields and a
    low confidence.

    Args:
        raw_title: Title exactly as received from the indexer
        policy: Confidence adjustments and title articles

    Returns:
        Immutable ParsedRelease
    """
    working, fields = run_pipeline(raw_title)
    display_title = resolve_title(working)

    release = ParsedRelease(
        raw_title=raw_title,
        series_or_artist_title=display_title,
        clean_title=clean_title(display_title, policy.articles),
        **fields,
    )
    confidence = score_confidence(
        release, count_numeric_tokens(display_title), policy
    )
    if confidence < policy.floor:
        logger.debug(f"Low confidence parse ({confidence}): {raw_title}")
    return replace(release, confidence=confidence)


@lru_cache(maxsize=1024)
def parse_release_title(
    raw_title: str, policy: ConfidencePolicy = DEFAULT_POLICY
) -> ParsedRelease:
    """Parse a title with the module-level cache and default policy."""
    return parse_title(raw_title, policy)


def requires_confirmation(
    release: ParsedRelease, policy: ConfidencePolicy = DEFAULT_POLICY
) -> bool:
    """Check whether a parse is too ambiguous to act on automatically."""
    return release.confidence < policy.floor


class ReleaseParser:
    """Release title parser with a per-instance parse cache."""

    def __init__(self, settings: Settings):
        self.policy = settings.confidence_policy()
        self._parse_cached = lru_cache(maxsize=settings.parse_cache_size)(
            self._parse_uncached
        )

    def _parse_uncached(self, raw_title: str) -> ParsedRelease:
        return parse_title(raw_title, self.policy)

    def parse(self, raw_title: str) -> ParsedRelease:
        """Parse a title, reusing the cached result for repeated titles."""
        return self._parse_cached(raw_title)

    def requires_confirmation(self, release: ParsedRelease) -> bool:
        return requires_confirmation(release, self.policy)

    def cache_info(self) -> str:
        info = self._parse_cached.cache_info()
        return f"hits={info.hits} misses={info.misses} size={info.currsize}"
