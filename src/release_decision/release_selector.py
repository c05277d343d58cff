"""Candidate evaluation pipeline: parse, restrict, score and pick the best."""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from release_decision.config import Settings
from release_decision.custom_formats import CompiledFormatSet
from release_decision.decision_engine import (
    QualityDecisionEngine,
    is_valid_size,
    select_best,
)
from release_decision.models import (
    Candidate,
    GrabDecision,
    Outcome,
    SelectionResult,
)
from release_decision.release_parser import ReleaseParser
from release_decision.restrictions import check_restrictions
from release_decision.snapshot import ConfigSnapshot

logger = logging.getLogger(__name__)


class ReleaseSelector:
    """Evaluates all candidates for one wanted item against a snapshot.

    Parsing and scoring are pure, so candidates may be evaluated on a thread
    pool; results keep the candidates' input order either way.
    """

    def __init__(self, settings: Settings, snapshot: ConfigSnapshot):
        self.settings = settings
        self.snapshot = snapshot
        self.parser = ReleaseParser(settings)
        self.engine = QualityDecisionEngine(
            snapshot.definitions,
            CompiledFormatSet(snapshot.custom_formats),
            settings.decision_policy(),
        )

    def evaluate_candidate(
        self,
        candidate: Candidate,
        current_file_quality_id: int | None = None,
        *,
        current_file_format_score: int = 0,
        runtime_minutes: float | None = None,
    ) -> GrabDecision:
        """Run one candidate through restrictions and the decision engine."""
        release = self.parser.parse(candidate.title)

        if is_valid_size(candidate.size_mb):
            restriction = check_restrictions(
                release,
                candidate.title,
                self.snapshot.restrictions,
                self.snapshot.tag_ids,
            )
            if not restriction.allowed:
                logger.debug(f"Restricted '{candidate.title}': {restriction.reason}")
                return GrabDecision(
                    release=release,
                    outcome=Outcome.REJECT,
                    size_mb=candidate.size_mb,
                    rejection_reasons=(restriction.reason or "restricted",),
                )

        return self.engine.evaluate(
            release,
            candidate.title,
            candidate.size_mb,
            self.snapshot.profile,
            self.snapshot.format_scores,
            current_file_quality_id,
            current_file_format_score=current_file_format_score,
            runtime_minutes=runtime_minutes,
            indexer_flags=candidate.indexer_flags,
        )

    def select(
        self,
        candidates: Sequence[Candidate],
        current_file_quality_id: int | None = None,
        *,
        current_file_format_score: int = 0,
        runtime_minutes: float | None = None,
    ) -> SelectionResult:
        """Evaluate every candidate and pick the best acceptable one.

        Args:
            candidates: Releases in discovery order
            current_file_quality_id: Quality of the file on disk, if any
            current_file_format_score: Format score of the file on disk
            runtime_minutes: Expected runtime for size limits and tie-breaks

        Returns:
            SelectionResult with one decision per candidate
        """

        def evaluate(candidate: Candidate) -> GrabDecision:
            return self.evaluate_candidate(
                candidate,
                current_file_quality_id,
                current_file_format_score=current_file_format_score,
                runtime_minutes=runtime_minutes,
            )

        workers = self.settings.evaluation_workers
        if workers > 1 and len(candidates) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                decisions = list(executor.map(evaluate, candidates))
        else:
            decisions = [evaluate(candidate) for candidate in candidates]

        result = select_best(decisions, runtime_minutes)
        if result.best is not None:
            logger.info(
                f"Best release: {result.best.release.raw_title} "
                f"({result.best.outcome.value}, score {result.best.total_score})"
            )
        else:
            logger.info(
                f"No acceptable release among {len(candidates)} candidates: "
                f"{', '.join(result.rejection_reasons) or 'no candidates'}"
            )
        return result


def evaluate_candidates(
    candidates: Sequence[Candidate],
    snapshot: ConfigSnapshot,
    settings: Settings | None = None,
    current_file_quality_id: int | None = None,
    *,
    current_file_format_score: int = 0,
    runtime_minutes: float | None = None,
) -> SelectionResult:
    """Evaluate candidates for one wanted item with a one-off selector."""
    selector = ReleaseSelector(settings or Settings(), snapshot)
    return selector.select(
        candidates,
        current_file_quality_id,
        current_file_format_score=current_file_format_score,
        runtime_minutes=runtime_minutes,
    )
