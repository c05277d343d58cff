"""Unit tests for the quality decision engine."""

import math
from collections.abc import Callable
from dataclasses import replace

import pytest

from release_decision.decision_engine import (
    REASON_CUTOFF_MET,
    REASON_INVALID_SIZE,
    REASON_NO_PROFILE,
    REASON_NOT_AN_IMPROVEMENT,
    REASON_QUALITY_NOT_PERMITTED,
    REASON_SIZE_LIMITS,
    REASON_UPGRADES_DISABLED,
    QualityDecisionEngine,
    find_quality_definition,
    select_best,
)
from release_decision.models import (
    CustomFormat,
    FormatScore,
    GrabDecision,
    Outcome,
    Quality,
    QualityDefinition,
    QualityProfile,
    Resolution,
    Source,
)
from release_decision.release_parser import parse_release_title

WEB_DL = "Show.S01E01.1080p.WEB-DL-GRP"
WEB_DL_X265 = "Show.S01E01.1080p.WEB-DL.x265-GRP"
HDTV = "Show.S01E01.1080p.HDTV-GRP"
HDTV_720 = "Show.S01E01.720p.HDTV-GRP"

HDTV_1080P_ID = 12
WEB_DL_1080P_ID = 14

EngineFactory = Callable[..., QualityDecisionEngine]


def evaluate(
    engine: QualityDecisionEngine,
    raw: str,
    profile: QualityProfile | None,
    current: int | None = None,
    size_mb: float = 1500,
    format_scores: tuple[FormatScore, ...] = (),
    runtime_minutes: float | None = None,
) -> GrabDecision:
    release = parse_release_title(raw)
    return engine.evaluate(
        release,
        raw,
        size_mb,
        profile,
        format_scores,
        current,
        runtime_minutes=runtime_minutes,
    )


def test_grab_without_current_file(
    make_engine: EngineFactory, web_profile: QualityProfile
) -> None:
    decision = evaluate(make_engine(), WEB_DL, web_profile)
    assert decision.outcome is Outcome.GRAB
    assert decision.quality_definition is not None
    assert decision.quality_definition.id == WEB_DL_1080P_ID
    assert decision.quality_rank == 2
    assert decision.total_score == 20_000
    assert decision.rejection_reasons == ()


def test_upgrade_to_better_quality(
    make_engine: EngineFactory, web_profile: QualityProfile
) -> None:
    """Test an HDTV file is upgraded to WEB-DL below the cutoff."""
    decision = evaluate(make_engine(), WEB_DL, web_profile, current=HDTV_1080P_ID)
    assert decision.outcome is Outcome.UPGRADE


def test_same_quality_is_not_an_improvement(
    make_engine: EngineFactory, web_profile: QualityProfile
) -> None:
    decision = evaluate(make_engine(), HDTV, web_profile, current=HDTV_1080P_ID)
    assert decision.outcome is Outcome.REJECT
    assert decision.rejection_reasons == (REASON_NOT_AN_IMPROVEMENT,)


def test_cutoff_met(make_engine: EngineFactory, web_profile: QualityProfile) -> None:
    decision = evaluate(make_engine(), WEB_DL, web_profile, current=WEB_DL_1080P_ID)
    assert decision.rejection_reasons == (REASON_CUTOFF_MET,)
    # Scored anyway so callers can explain the decision
    assert decision.total_score == 20_000


def test_upgrades_disabled(
    make_engine: EngineFactory, web_profile: QualityProfile
) -> None:
    """Test disabled upgrades are reported instead of cutoff or ranking."""
    profile = replace(web_profile, upgrade_allowed=False)
    decision = evaluate(make_engine(), WEB_DL, profile, current=HDTV_1080P_ID)
    assert decision.rejection_reasons == (REASON_UPGRADES_DISABLED,)
    decision = evaluate(make_engine(), WEB_DL, profile, current=WEB_DL_1080P_ID)
    assert decision.rejection_reasons == (REASON_UPGRADES_DISABLED,)


def test_quality_not_permitted(
    make_engine: EngineFactory, web_profile: QualityProfile
) -> None:
    decision = evaluate(make_engine(), HDTV_720, web_profile)
    assert decision.outcome is Outcome.REJECT
    assert decision.rejection_reasons == (REASON_QUALITY_NOT_PERMITTED,)


def test_no_profile(make_engine: EngineFactory) -> None:
    decision = evaluate(make_engine(), WEB_DL, None)
    assert decision.rejection_reasons == (REASON_NO_PROFILE,)


@pytest.mark.parametrize("size_mb", [0, -1, math.nan, math.inf])
def test_invalid_size_skipped(
    make_engine: EngineFactory, web_profile: QualityProfile, size_mb: float
) -> None:
    decision = evaluate(make_engine(), WEB_DL, web_profile, size_mb=size_mb)
    assert decision.skipped
    assert decision.rejection_reasons == (REASON_INVALID_SIZE,)


def test_size_limits_with_runtime(
    make_engine: EngineFactory, web_profile: QualityProfile
) -> None:
    """Test sizes are checked against per-minute limits only with a runtime."""
    engine = make_engine()
    too_small = evaluate(engine, WEB_DL, web_profile, size_mb=100, runtime_minutes=45)
    assert too_small.rejection_reasons == (REASON_SIZE_LIMITS,)
    fine = evaluate(engine, WEB_DL, web_profile, size_mb=1500, runtime_minutes=45)
    assert fine.outcome is Outcome.GRAB
    no_runtime = evaluate(engine, WEB_DL, web_profile, size_mb=100)
    assert no_runtime.outcome is Outcome.GRAB


def test_format_scores_of_other_profiles_ignored(
    make_engine: EngineFactory,
    web_profile: QualityProfile,
    x265_format: CustomFormat,
) -> None:
    engine = make_engine((x265_format,))
    scores = (FormatScore(99, x265_format.id, 500),)
    decision = evaluate(engine, WEB_DL_X265, web_profile, format_scores=scores)
    assert decision.format_score == 0
    assert [m.format_id for m in decision.matched_formats] == [x265_format.id]


def test_format_score_breaks_equal_quality(
    make_engine: EngineFactory,
    web_profile: QualityProfile,
    x265_format: CustomFormat,
) -> None:
    engine = make_engine((x265_format,))
    scores = (FormatScore(web_profile.id, x265_format.id, 100),)
    hdtv_x265 = "Show.S01E01.1080p.HDTV.x265-GRP"
    decision = evaluate(
        engine, hdtv_x265, web_profile, current=HDTV_1080P_ID, format_scores=scores
    )
    assert decision.format_score == 100
    assert decision.outcome is Outcome.UPGRADE


@pytest.mark.parametrize("score", [5_000, 50_000])
def test_quality_dominates_format_score(
    make_engine: EngineFactory,
    web_profile: QualityProfile,
    x265_format: CustomFormat,
    score: int,
) -> None:
    """Test no format score lifts a lower quality above a higher one."""
    engine = make_engine((x265_format,))
    scores = (FormatScore(web_profile.id, x265_format.id, score),)
    hdtv = evaluate(
        engine, "Show.S01E01.1080p.HDTV.x265-GRP", web_profile, format_scores=scores
    )
    web = evaluate(engine, WEB_DL, web_profile, format_scores=scores)
    assert hdtv.format_score == score
    assert web.total_score > hdtv.total_score


def test_format_upgrade_past_cutoff(
    make_engine: EngineFactory,
    web_profile: QualityProfile,
    x265_format: CustomFormat,
) -> None:
    """Test the opt-in knob allows a better-scored release once cutoff is met."""
    scores = (FormatScore(web_profile.id, x265_format.id, 100),)

    default = make_engine((x265_format,))
    decision = evaluate(
        default, WEB_DL_X265, web_profile, WEB_DL_1080P_ID, format_scores=scores
    )
    assert decision.rejection_reasons == (REASON_CUTOFF_MET,)

    enabled = make_engine((x265_format,), allow_format_upgrade_past_cutoff=True)
    decision = evaluate(
        enabled, WEB_DL_X265, web_profile, WEB_DL_1080P_ID, format_scores=scores
    )
    assert decision.outcome is Outcome.UPGRADE

    strict = make_engine(
        (x265_format,),
        allow_format_upgrade_past_cutoff=True,
        format_upgrade_past_cutoff_threshold=100,
    )
    decision = evaluate(
        strict, WEB_DL_X265, web_profile, WEB_DL_1080P_ID, format_scores=scores
    )
    assert decision.rejection_reasons == (REASON_CUTOFF_MET,)


def test_find_quality_definition_fallbacks(
    definitions: tuple[QualityDefinition, ...],
) -> None:
    exact = find_quality_definition(
        Quality(Resolution.R1080P, Source.WEBDL), definitions
    )
    assert exact is not None and exact.name == "WEB-DL 1080p"

    no_resolution = find_quality_definition(Quality(source=Source.WEBDL), definitions)
    assert no_resolution is not None and no_resolution.name == "WEB-DL 720p"

    no_source = find_quality_definition(
        Quality(resolution=Resolution.R1080P), definitions
    )
    assert no_source is not None and no_source.name == "HDTV-1080p"

    unknown = find_quality_definition(Quality(), definitions)
    assert unknown is not None and unknown.name == "Unknown"

    assert find_quality_definition(Quality(Resolution.R360P, Source.BLURAY), ()) is None


def _accepted(
    engine: QualityDecisionEngine, profile: QualityProfile, size_mb: float
) -> GrabDecision:
    return evaluate(engine, WEB_DL, profile, size_mb=size_mb)


def test_select_best_prefers_total_score(
    make_engine: EngineFactory, web_profile: QualityProfile
) -> None:
    engine = make_engine()
    hdtv = evaluate(engine, HDTV, web_profile)
    web = evaluate(engine, WEB_DL, web_profile)
    result = select_best([hdtv, web])
    assert result.best is web
    assert result.decisions == (hdtv, web)


def test_select_best_tie_breaks(
    make_engine: EngineFactory, web_profile: QualityProfile
) -> None:
    """Test ties go to the preferred size for the runtime, then input order."""
    engine = make_engine()
    large = _accepted(engine, web_profile, 5000)
    close = _accepted(engine, web_profile, 3000)

    # WEB-DL 1080p prefers 70 MB/min, 3150 MB for 45 minutes
    assert select_best([large, close], runtime_minutes=45).best is close
    assert select_best([large, close]).best is large


def test_select_best_nothing_acceptable(
    make_engine: EngineFactory, web_profile: QualityProfile
) -> None:
    engine = make_engine()
    decisions = [
        evaluate(engine, HDTV_720, web_profile),
        evaluate(engine, HDTV_720, web_profile, size_mb=0),
        evaluate(engine, HDTV_720, web_profile),
    ]
    result = select_best(decisions)
    assert result.best is None
    assert result.rejection_reasons == (
        REASON_QUALITY_NOT_PERMITTED,
        REASON_INVALID_SIZE,
    )


def test_select_best_empty() -> None:
    result = select_best([])
    assert result.best is None
    assert result.decisions == ()
