"""Quality decision engine: grab, upgrade or reject one release."""

import logging
import math
from collections.abc import Sequence
from dataclasses import replace

from release_decision.config import DecisionPolicy
from release_decision.custom_formats import CompiledFormatSet, match_formats
from release_decision.models import (
    CustomFormat,
    FormatScore,
    GrabDecision,
    MatchedFormat,
    Outcome,
    ParsedRelease,
    Quality,
    QualityDefinition,
    QualityProfile,
    Resolution,
    SelectionResult,
    Source,
)

logger = logging.getLogger(__name__)

REASON_INVALID_SIZE = "invalid size"
REASON_NO_PROFILE = "no quality profile"
REASON_QUALITY_NOT_PERMITTED = "quality not permitted by profile"
REASON_SIZE_LIMITS = "size outside quality limits"
REASON_UPGRADES_DISABLED = "upgrades disabled"
REASON_CUTOFF_MET = "cutoff already met"
REASON_NOT_AN_IMPROVEMENT = "not an improvement"

_RESOLUTION_ORDER = list(Resolution)


def is_valid_size(size_mb: float) -> bool:
    return math.isfinite(size_mb) and size_mb > 0


def find_quality_definition(
    quality: Quality, definitions: Sequence[QualityDefinition]
) -> QualityDefinition | None:
    """Map parsed quality to the closest definition by (source, resolution).

    An exact pair wins. A known source with unknown resolution takes that
    source's lowest resolution tier, and a known resolution with unknown
    source is treated as television.
    """
    source = quality.definition_source
    resolution = quality.resolution

    for definition in definitions:
        if definition.source is source and definition.resolution is resolution:
            return definition

    if resolution is Resolution.UNKNOWN and source is not Source.UNKNOWN:
        same_source = [d for d in definitions if d.source is source]
        if same_source:
            return min(
                same_source, key=lambda d: _RESOLUTION_ORDER.index(d.resolution)
            )

    if source is Source.UNKNOWN and resolution is not Resolution.UNKNOWN:
        for definition in definitions:
            if definition.source is Source.TV and definition.resolution is resolution:
                return definition

    return None


def profile_format_scores(
    profile: QualityProfile, format_scores: Sequence[FormatScore]
) -> dict[int, int]:
    """Scores of this profile only; other profiles' rows are ignored."""
    return {
        score.format_id: score.score
        for score in format_scores
        if score.profile_id == profile.id
    }


def rank_multiplier(policy: DecisionPolicy, scores: dict[int, int]) -> int:
    """Weight of one quality rank step.

    It exceeds the widest possible spread of format scores, so no
    combination of matched formats can cross a quality rank boundary.
    """
    spread = sum(abs(score) for score in scores.values())
    return max(policy.quality_rank_multiplier, spread + 1)


class QualityDecisionEngine:
    """Evaluates parsed releases against a quality profile and custom formats."""

    def __init__(
        self,
        definitions: Sequence[QualityDefinition],
        formats: CompiledFormatSet | Sequence[CustomFormat] = (),
        policy: DecisionPolicy | None = None,
    ):
        self.definitions = tuple(definitions)
        if isinstance(formats, CompiledFormatSet):
            self.formats = formats
        else:
            self.formats = CompiledFormatSet(formats)
        self.policy = policy or DecisionPolicy()

    def _reject(self, decision: GrabDecision, reason: str) -> GrabDecision:
        logger.debug(f"Rejected '{decision.release.raw_title}': {reason}")
        return replace(decision, outcome=Outcome.REJECT, rejection_reasons=(reason,))

    def _accept(self, decision: GrabDecision, outcome: Outcome) -> GrabDecision:
        logger.debug(
            f"{outcome.value.capitalize()} '{decision.release.raw_title}': "
            f"rank={decision.quality_rank} formats={decision.format_score} "
            f"total={decision.total_score}"
        )
        return replace(decision, outcome=outcome)

    def evaluate(
        self,
        release: ParsedRelease,
        raw_title: str,
        size_mb: float,
        profile: QualityProfile | None,
        format_scores: Sequence[FormatScore],
        current_file_quality_id: int | None = None,
        *,
        current_file_format_score: int = 0,
        runtime_minutes: float | None = None,
        indexer_flags: frozenset[str] = frozenset(),
    ) -> GrabDecision:
        """Decide whether to grab, upgrade to, or reject a release.

        Every failure becomes a reject outcome with a reason; nothing raises.

        Args:
            release: Parsed release
            raw_title: Title as received, for release name conditions
            size_mb: Release size in MB; zero, negative or NaN skips the release
            profile: Quality profile of the wanted item, None if unassigned
            format_scores: Format scores; only rows of this profile count
            current_file_quality_id: Quality of the file on disk, if any
            current_file_format_score: Format score of the file on disk
            runtime_minutes: Expected runtime, enables size limit checks
            indexer_flags: Indexer flags for indexerFlag conditions

        Returns:
            GrabDecision for this release
        """
        if not is_valid_size(size_mb):
            logger.info(f"Skipping '{raw_title}': invalid size {size_mb}")
            return GrabDecision(
                release=release,
                outcome=Outcome.REJECT,
                size_mb=size_mb,
                rejection_reasons=(REASON_INVALID_SIZE,),
                skipped=True,
            )

        unscored = GrabDecision(
            release=release, outcome=Outcome.REJECT, size_mb=size_mb
        )
        if profile is None:
            return self._reject(unscored, REASON_NO_PROFILE)

        definition = find_quality_definition(release.quality, self.definitions)
        if definition is None or not profile.is_enabled(definition.id):
            return self._reject(
                replace(unscored, quality_definition=definition),
                REASON_QUALITY_NOT_PERMITTED,
            )

        if runtime_minutes and runtime_minutes > 0:
            low = definition.min_size * runtime_minutes
            high = (
                definition.max_size * runtime_minutes
                if definition.max_size is not None
                else math.inf
            )
            if not low <= size_mb <= high:
                return self._reject(
                    replace(unscored, quality_definition=definition),
                    REASON_SIZE_LIMITS,
                )

        scores = profile_format_scores(profile, format_scores)
        matches = match_formats(
            release, raw_title, self.formats, size_mb, indexer_flags
        )
        matched_formats = tuple(
            MatchedFormat(match.format_id, scores.get(match.format_id, 0))
            for match in matches
        )
        format_score = sum(matched.score for matched in matched_formats)
        quality_rank = profile.rank_of(definition.id)
        total_score = quality_rank * rank_multiplier(self.policy, scores) + format_score

        scored = replace(
            unscored,
            quality_definition=definition,
            matched_formats=matched_formats,
            quality_rank=quality_rank,
            format_score=format_score,
            total_score=total_score,
        )

        if current_file_quality_id is None:
            return self._accept(scored, Outcome.GRAB)

        if not profile.upgrade_allowed:
            return self._reject(scored, REASON_UPGRADES_DISABLED)

        current_rank = profile.rank_of(current_file_quality_id)
        cutoff_rank = profile.rank_of(profile.cutoff_quality_id)
        if current_rank >= cutoff_rank and not self._may_upgrade_past_cutoff(
            format_score
        ):
            return self._reject(scored, REASON_CUTOFF_MET)

        if quality_rank > current_rank or (
            quality_rank == current_rank and format_score > current_file_format_score
        ):
            return self._accept(scored, Outcome.UPGRADE)

        return self._reject(scored, REASON_NOT_AN_IMPROVEMENT)

    def _may_upgrade_past_cutoff(self, format_score: int) -> bool:
        return (
            self.policy.allow_format_upgrade_past_cutoff
            and format_score > self.policy.format_upgrade_past_cutoff_threshold
        )


def _size_distance(decision: GrabDecision, runtime_minutes: float | None) -> float:
    definition = decision.quality_definition
    if not runtime_minutes or definition is None or definition.preferred_size is None:
        return 0.0
    return abs(decision.size_mb - definition.preferred_size * runtime_minutes)


def select_best(
    decisions: Sequence[GrabDecision], runtime_minutes: float | None = None
) -> SelectionResult:
    """Reduce per-candidate decisions to the single best pick.

    Highest total score wins. Ties go to the size closest to the preferred
    size for the runtime, then to the earliest candidate in input order.

    Args:
        decisions: Decisions in candidate discovery order
        runtime_minutes: Expected runtime used for the preferred size tie-break

    Returns:
        SelectionResult; ``best`` is None when nothing is acceptable, and
        ``rejection_reasons`` lists the distinct reasons of rejected candidates
    """
    accepted = [
        (index, decision)
        for index, decision in enumerate(decisions)
        if decision.accepted
    ]
    best = None
    if accepted:
        _, best = min(
            accepted,
            key=lambda pair: (
                -pair[1].total_score,
                _size_distance(pair[1], runtime_minutes),
                pair[0],
            ),
        )

    reasons = dict.fromkeys(
        reason
        for decision in decisions
        if not decision.accepted
        for reason in decision.rejection_reasons
    )
    return SelectionResult(
        best=best, decisions=tuple(decisions), rejection_reasons=tuple(reasons)
    )
