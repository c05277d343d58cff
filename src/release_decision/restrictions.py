"""Release restrictions: required and forbidden terms."""

import logging
from collections.abc import Iterable

from release_decision.models import ParsedRelease, Restriction, RestrictionResult

logger = logging.getLogger(__name__)

ALLOWED = RestrictionResult(allowed=True)


def _terms(terms: Iterable[str]) -> list[str]:
    return [term.strip() for term in terms if term.strip()]


def is_allowed(
    release: ParsedRelease, raw_title: str, restriction: Restriction
) -> RestrictionResult:
    """Check a release title against one restriction.

    Matching is a case-insensitive substring test on the raw title. A
    forbidden term rejects immediately; otherwise, when required terms are
    configured, at least one must be present. Blank terms are ignored.

    Args:
        release: Parsed release, used for logging only
        raw_title: Title as received from the indexer
        restriction: Restriction already resolved for the item's tags

    Returns:
        RestrictionResult with a human-readable reason when rejected
    """
    title = raw_title.casefold()

    for term in _terms(restriction.must_not_contain):
        if term.casefold() in title:
            logger.debug(
                f"Restriction rejected '{release.series_or_artist_title}': "
                f"forbidden term '{term}'"
            )
            return RestrictionResult(False, f"Contains forbidden term: {term}")

    required = _terms(restriction.must_contain)
    if required and not any(term.casefold() in title for term in required):
        logger.debug(
            f"Restriction rejected '{release.series_or_artist_title}': "
            "no required term"
        )
        return RestrictionResult(
            False, f"Does not contain any of: {', '.join(required)}"
        )

    return ALLOWED


def applicable_restrictions(
    restrictions: Iterable[Restriction], tag_ids: Iterable[int]
) -> list[Restriction]:
    """Select restrictions that apply to an item with the given tags.

    Untagged restrictions apply to every item; tagged ones apply when they
    share at least one tag with the item.
    """
    item_tags = frozenset(tag_ids)
    return [
        restriction
        for restriction in restrictions
        if not restriction.scope_tag_ids or restriction.scope_tag_ids & item_tags
    ]


def check_restrictions(
    release: ParsedRelease,
    raw_title: str,
    restrictions: Iterable[Restriction],
    tag_ids: Iterable[int] = (),
) -> RestrictionResult:
    """Evaluate every restriction applicable to the item; the first failure wins."""
    for restriction in applicable_restrictions(restrictions, tag_ids):
        result = is_allowed(release, raw_title, restriction)
        if not result.allowed:
            return result
    return ALLOWED
