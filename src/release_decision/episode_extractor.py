"""Episode identity extraction: SxxEyy, daily dates, absolute numbers, specials."""

import re
from collections.abc import Callable
from datetime import date

from release_decision.models import SpecialType
from release_decision.title_normalizer import (
    ExtractedFields,
    VocabularyEntry,
    WorkingTitle,
    find_earliest,
    token_pattern,
)

MULTI_EPISODE_RE = re.compile(
    r"(?<![a-z0-9])s(?P<season>\d{1,4}) ?e(?P<first>\d{1,4})"
    r"(?P<rest>(?:(?:-?e|-)\d{1,4})+)(?![0-9a-z])"
)
SINGLE_EPISODE_RE = re.compile(
    r"(?<![a-z0-9])s(?P<season>\d{1,4}) ?e(?P<episode>\d{1,4})(?![0-9a-z])"
)
CROSS_EPISODE_RE = re.compile(
    r"(?<![a-z0-9])(?P<season>\d{1,2})x(?P<episode>\d{2,3})(?![0-9a-z])"
)
AIR_DATE_RE = re.compile(
    r"(?<![0-9])(?P<year>(?:19|20)\d{2})(?P<sep>[ .\-])"
    r"(?P<month>\d{2})(?P=sep)(?P<day>\d{2})(?![0-9])"
)
SEASON_RANGE_RE = re.compile(
    r"(?<![a-z0-9])(?:s(?P<first>\d{1,2}) ?- ?s|seasons? ?(?P<named>\d{1,2}) ?- ?)"
    r"(?P<last>\d{1,2})(?![0-9a-z])"
)
ANIME_RANGE_RE = re.compile(
    r"[\[(] ?(?P<first>\d{2,4}) ?[-~] ?(?P<last>\d{2,4}) ?[\])]"
)
SEASON_PACK_RE = re.compile(
    r"(?<![a-z0-9])(?:s|season ?)(?P<season>\d{1,2})(?![0-9a-z])"
)
ABSOLUTE_RE = re.compile(
    r"(?<![a-z0-9.])(?P<number>\d{2,4})(?:v(?P<version>\d{1,2}))?(?![0-9a-z.])"
)
ABSOLUTE_MARKER_RE = re.compile(r"(?:-|#|(?<![a-z0-9])(?:ep|episode|e))\W*$")
YEAR_LIKE_RE = re.compile(r"^(?:19|20)\d{2}$")

SPECIAL_VOCABULARY: tuple[VocabularyEntry[SpecialType], ...] = (
    VocabularyEntry(
        re.compile(r"(?<![a-z0-9])(?:ova|oad)(?![a-z])"), SpecialType.OVA
    ),
    VocabularyEntry(re.compile(r"(?<![a-z0-9])ona(?![a-z])"), SpecialType.ONA),
    VocabularyEntry(
        re.compile(r"(?<![a-z0-9])(?:sp|specials?)(?![a-z])"), SpecialType.SPECIAL
    ),
    VocabularyEntry(token_pattern("recap"), SpecialType.RECAP),
    VocabularyEntry(
        token_pattern("gekijouban|the movie|movie edition"), SpecialType.MOVIE_EDITION
    ),
)

BATCH_RE = token_pattern("batch|complete series|complete collection")

EpisodeMatcher = Callable[[WorkingTitle], tuple[WorkingTitle, ExtractedFields] | None]


def _expand_episodes(first: int, rest: str) -> tuple[int, ...]:
    """Expand ``-E`` ranges inclusively; keep enumerated ``E`` lists as given."""
    episodes = [first]
    previous = first
    for separator, number in re.findall(r"(-?e|-)(\d{1,4})", rest):
        value = int(number)
        if "-" in separator and value > previous:
            episodes.extend(range(previous + 1, value + 1))
        else:
            episodes.append(value)
        previous = value
    return tuple(episodes)


def _match_multi_episode(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields] | None:
    match = working.search(MULTI_EPISODE_RE)
    if match is None:
        return None
    fields: ExtractedFields = {
        "season": int(match.group("season")),
        "episodes": _expand_episodes(int(match.group("first")), match.group("rest")),
    }
    return working.consume(*match.span(), "episode", anchor=True), fields


def _match_single_episode(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields] | None:
    match = working.search(SINGLE_EPISODE_RE) or working.search(CROSS_EPISODE_RE)
    if match is None:
        return None
    fields: ExtractedFields = {
        "season": int(match.group("season")),
        "episodes": (int(match.group("episode")),),
    }
    return working.consume(*match.span(), "episode", anchor=True), fields


def _match_air_date(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields] | None:
    for match in working.finditer(AIR_DATE_RE):
        try:
            air_date = date(
                int(match.group("year")),
                int(match.group("month")),
                int(match.group("day")),
            )
        except ValueError:
            # Not a calendar date, e.g. 2024.13.45
            continue
        return working.consume(*match.span(), "air_date", anchor=True), {
            "air_date": air_date
        }
    return None


def _match_season_range(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields] | None:
    match = working.search(SEASON_RANGE_RE)
    if match is None:
        return None
    first = match.group("first") or match.group("named")
    fields: ExtractedFields = {"season": int(first), "is_batch": True}
    return working.consume(*match.span(), "season_range", anchor=True), fields


def _match_anime_range(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields] | None:
    for match in working.finditer(ANIME_RANGE_RE):
        first, last = match.group("first"), match.group("last")
        if YEAR_LIKE_RE.match(first) and YEAR_LIKE_RE.match(last):
            continue
        if int(last) <= int(first):
            continue
        return working.consume(*match.span(), "episode_range", anchor=True), {
            "is_batch": True
        }
    return None


def _match_season_pack(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields] | None:
    match = working.search(SEASON_PACK_RE)
    if match is None:
        return None
    fields: ExtractedFields = {"season": int(match.group("season"))}
    return working.consume(*match.span(), "season", anchor=True), fields


# Most specific first; the first matcher that succeeds decides the identity
EPISODE_MATCHERS: tuple[EpisodeMatcher, ...] = (
    _match_multi_episode,
    _match_single_episode,
    _match_air_date,
    _match_season_range,
    _match_anime_range,
    _match_season_pack,
)


def extract_episode_identity(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields]:
    """Extract season/episode numbers, an air date or a season range.

    No match is not an error; the fields simply stay unset.
    """
    for matcher in EPISODE_MATCHERS:
        result = matcher(working)
        if result is not None:
            return result
    return working, {}


def extract_absolute_episode(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields]:
    """Extract an anime absolute episode number with an optional version.

    Runs after quality and year extraction so resolutions and years are
    already consumed. Only the last bounded 2-4 digit number is considered,
    and it must either sit in a fansub-style title or follow an episode
    marker (`` - ``, ``#``, ``ep``).
    """
    if any(span.label in ("episode", "air_date") for span in working.consumed):
        return working, {}

    # Parts of a date-shaped run that was rejected as a calendar date
    date_spans = [match.span() for match in AIR_DATE_RE.finditer(working.title.text)]
    candidates = [
        match
        for match in working.finditer(ABSOLUTE_RE)
        if not any(start <= match.start() < end for start, end in date_spans)
    ]
    if not candidates:
        return working, {}

    match = candidates[-1]
    number = match.group("number")
    if len(number) == 4 and YEAR_LIKE_RE.match(number):
        return working, {}
    if not working.has_text_before(match.start()):
        return working, {}

    prefix = working.masked()[: match.start()].rstrip()
    if not (working.title.is_fansub_style or ABSOLUTE_MARKER_RE.search(prefix)):
        return working, {}

    fields: ExtractedFields = {"absolute_episode": int(number)}
    if match.group("version"):
        fields["version"] = int(match.group("version"))
    return working.consume(*match.span(), "absolute", anchor=True), fields


def extract_special_type(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields]:
    """Detect OVA/ONA/special/recap markers without consuming numbers."""
    found = find_earliest(working, SPECIAL_VOCABULARY)
    if found is None:
        return working, {}
    match, special_type = found
    if not working.has_text_before(match.start()):
        return working, {}
    return working.consume(*match.span(), "special"), {"special_type": special_type}


def extract_batch_markers(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields]:
    match = working.search(BATCH_RE)
    if match is None:
        return working, {}
    return working.consume(*match.span(), "batch"), {"is_batch": True}
