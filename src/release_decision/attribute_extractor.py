"""Release attribute extraction: group, hash, languages, edition and year."""

import re

from release_decision.quality_extractor import first_resolution, is_quality_token
from release_decision.title_normalizer import (
    MASK,
    ExtractedFields,
    VocabularyEntry,
    WorkingTitle,
    find_earliest,
    token_pattern,
)

RELEASE_HASH_RE = re.compile(r"^[0-9A-Fa-f]{8}$")
TRAILING_GROUP_RE = re.compile(
    rf"-(?P<group>[^\s\-\[\](){MASK}]+)"
    rf"(?P<tags>(?:[ {MASK}]*\[[^\[\]]*\])*)[ {MASK}]*$"
)
YEAR_RE = re.compile(r"(?<![0-9a-z])(?:19|20)\d{2}(?![0-9a-z])")

# Tails of hyphenated quality/audio words that look like a -GROUP suffix
GROUP_FRAGMENTS: frozenset[str] = frozenset(
    {"dl", "rip", "hd", "ray", "ma", "es", "x", "r", "sdh", "sub", "subs", "dub"}
)

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "fr": "French",
    "es": "Spanish",
    "de": "German",
    "it": "Italian",
    "da": "Danish",
    "nl": "Dutch",
    "ja": "Japanese",
    "is": "Icelandic",
    "zh": "Chinese",
    "ru": "Russian",
    "pl": "Polish",
    "vi": "Vietnamese",
    "sv": "Swedish",
    "no": "Norwegian",
    "fi": "Finnish",
    "tr": "Turkish",
    "pt": "Portuguese",
    "el": "Greek",
    "ko": "Korean",
    "hu": "Hungarian",
    "he": "Hebrew",
    "lt": "Lithuanian",
    "cs": "Czech",
    "hi": "Hindi",
    "ro": "Romanian",
    "th": "Thai",
    "bg": "Bulgarian",
    "ar": "Arabic",
    "uk": "Ukrainian",
    "fa": "Persian",
    "bn": "Bengali",
    "sk": "Slovak",
    "lv": "Latvian",
}

LANGUAGE_VOCABULARY: tuple[VocabularyEntry[str], ...] = (
    VocabularyEntry(token_pattern(r"english|eng"), "en"),
    VocabularyEntry(token_pattern(r"french|truefrench|vostfr|vff"), "fr"),
    VocabularyEntry(token_pattern(r"spanish|castellano|latino|esp"), "es"),
    VocabularyEntry(token_pattern(r"german|deutsch|ger"), "de"),
    VocabularyEntry(token_pattern(r"italian|ita"), "it"),
    VocabularyEntry(token_pattern(r"danish|dan"), "da"),
    VocabularyEntry(token_pattern(r"dutch|flemish"), "nl"),
    VocabularyEntry(token_pattern(r"japanese|jpn|jap"), "ja"),
    VocabularyEntry(token_pattern(r"icelandic"), "is"),
    VocabularyEntry(token_pattern(r"chinese|chs|cht"), "zh"),
    VocabularyEntry(token_pattern(r"russian|rus"), "ru"),
    VocabularyEntry(token_pattern(r"polish"), "pl"),
    VocabularyEntry(token_pattern(r"vietnamese"), "vi"),
    VocabularyEntry(token_pattern(r"swedish|swe"), "sv"),
    VocabularyEntry(token_pattern(r"norwegian|nor"), "no"),
    VocabularyEntry(token_pattern(r"finnish|fin"), "fi"),
    VocabularyEntry(token_pattern(r"turkish|tur"), "tr"),
    VocabularyEntry(token_pattern(r"portuguese|por"), "pt"),
    VocabularyEntry(token_pattern(r"greek"), "el"),
    VocabularyEntry(token_pattern(r"korean|kor"), "ko"),
    VocabularyEntry(token_pattern(r"hungarian|hun"), "hu"),
    VocabularyEntry(token_pattern(r"hebrew|heb"), "he"),
    VocabularyEntry(token_pattern(r"lithuanian"), "lt"),
    VocabularyEntry(token_pattern(r"czech|cze"), "cs"),
    VocabularyEntry(token_pattern(r"hindi"), "hi"),
    VocabularyEntry(token_pattern(r"romanian|rum"), "ro"),
    VocabularyEntry(token_pattern(r"thai"), "th"),
    VocabularyEntry(token_pattern(r"bulgarian"), "bg"),
    VocabularyEntry(token_pattern(r"arabic|ara"), "ar"),
    VocabularyEntry(token_pattern(r"ukrainian|ukr"), "uk"),
    VocabularyEntry(token_pattern(r"persian|farsi"), "fa"),
    VocabularyEntry(token_pattern(r"bengali"), "bn"),
    VocabularyEntry(token_pattern(r"slovak"), "sk"),
    VocabularyEntry(token_pattern(r"latvian"), "lv"),
)

# Consumed so they do not leak into the title, but carry no language
MULTI_LANGUAGE_RE = token_pattern(r"multi|dual audio|dual")

EDITION_RE = token_pattern(
    r"director'?s(?: cut)?|extended(?: cut| edition)?|unrated|uncut"
    r"|theatrical(?: cut)?|remastered|imax|criterion(?: collection)?"
    r"|(?:special|ultimate|collector'?s) edition|final cut"
    r"|(?:\d{1,3}(?:st|nd|rd|th) )?anniversary(?: edition)?"
)


def extract_container(working: WorkingTitle) -> tuple[WorkingTitle, ExtractedFields]:
    """Report the container extension split off during normalization."""
    if working.title.container is None:
        return working, {}
    return working, {"container": working.title.container}


def extract_release_hash(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields]:
    """Extract the last bracketed 8-digit hexadecimal CRC, e.g. ``[ABCD1234]``."""
    for start, end in reversed(working.title.brackets):
        inner = working.title.text[start + 1 : end - 1].strip()
        if RELEASE_HASH_RE.match(inner) and working.is_free(start, end):
            return working.consume(start, end, "hash"), {"release_hash": inner}
    return working, {}


def _is_group_name(name: str) -> bool:
    if not name or name.isdigit():
        return False
    if name.lower() in GROUP_FRAGMENTS:
        return False
    if RELEASE_HASH_RE.match(name):
        return False
    return not is_quality_token(name)


def _leading_bracket_group(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields] | None:
    title = working.title
    if not title.is_fansub_style or not title.brackets:
        return None
    start, end = title.brackets[0]
    if start != 0 or not working.is_free(start, end):
        return None
    name = title.original(start + 1, end - 1).strip()
    if not _is_group_name(name):
        return None
    return working.consume(start, end, "group"), {"release_group": name}


def _trailing_dash_group(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields] | None:
    match = working.search(TRAILING_GROUP_RE, lower=False)
    if match is None or not working.has_text_before(match.start()):
        return None
    start, end = match.span("group")
    name = working.title.original(start, end)
    if not _is_group_name(name):
        return None
    return working.consume(match.start(), match.end(), "group"), {
        "release_group": name
    }


def extract_release_group(
    working: WorkingTitle,
) -> tuple[WorkingTitle, ExtractedFields]:
    """Extract the release group.

    Fansub-style titles (``[Group] Title - 01``) carry the group in their
    leading bracket; scene and P2P titles end in ``-GROUP``, optionally
    followed by bracketed site tags which are dropped with it.
    """
    result = _leading_bracket_group(working) or _trailing_dash_group(working)
    if result is None:
        return working, {}
    return result


def extract_languages(working: WorkingTitle) -> tuple[WorkingTitle, ExtractedFields]:
    """Extract language tags found after the title region.

    Language words before the first anchor are treated as part of the title,
    since names like "The Italian Job" are common.
    """
    anchor = working.first_anchor()
    if anchor is None:
        return working, {}

    languages: set[str] = set()
    while True:
        found = find_earliest(working, LANGUAGE_VOCABULARY, start_at=anchor)
        if found is None:
            break
        match, code = found
        languages.add(code)
        working = working.consume(*match.span(), "language")

    for match in list(working.finditer(MULTI_LANGUAGE_RE)):
        if match.start() >= anchor:
            working = working.consume(*match.span(), "language")

    if not languages:
        return working, {}
    return working, {"languages": frozenset(languages)}


def extract_edition(working: WorkingTitle) -> tuple[WorkingTitle, ExtractedFields]:
    match = working.search(EDITION_RE)
    if match is None:
        return working, {}
    if not working.has_text_before(match.start()):
        return working, {}
    edition = working.title.text[match.start() : match.end()]
    return working.consume(*match.span(), "edition"), {"edition": edition}


def extract_year(working: WorkingTitle) -> tuple[WorkingTitle, ExtractedFields]:
    """Extract the release year.

    Runs before quality extraction so movies and albums get an anchor too.
    The year must come before the first anchor, or before the first
    resolution token when there is no anchor yet. Within that bound the last
    year-like number wins, so a title that is itself a year
    (``2012 2009 1080p``) keeps its name. Without any bound the first one
    wins, so trailing remaster years do not replace the release year.
    """
    limit = working.first_anchor()
    if limit is None:
        limit = first_resolution(working)
    candidates = [
        match
        for match in working.finditer(YEAR_RE)
        if (limit is None or match.start() < limit)
        and working.has_text_before(match.start())
    ]
    if not candidates:
        return working, {}
    match = candidates[0] if limit is None else candidates[-1]
    return working.consume(*match.span(), "year", anchor=True), {
        "year": int(match.group())
    }
