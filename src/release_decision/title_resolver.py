"""Title resolution from the text left over after extraction."""

import re

from release_decision.title_normalizer import WorkingTitle

ACRONYM_RE = re.compile(r"(?<![A-Za-z0-9])(?:[A-Za-z0-9]\.){2,}[A-Za-z0-9]?\.?")
EMPTY_BRACKETS_RE = re.compile(r"\[\s*\]|\(\s*\)|\{\s*\}")
SEPARATOR_RE = re.compile(r"[._]")
EDGE_PUNCTUATION = " -–:;,.|/~+_#"
OPENING_BRACKETS = "([{"
NUMERIC_TOKEN_RE = re.compile(r"(?<![A-Za-z0-9])\d+(?![A-Za-z0-9])")
PUNCTUATION_RE = re.compile(r"[^\w\s]")


def _title_region(working: WorkingTitle) -> tuple[int, int]:
    """Find the normalized span holding the title.

    The title is the text before the first anchor that has unconsumed text in
    front of it. A fansub title starts with its group bracket, so the anchor
    search skips anchors with nothing but consumed text before them.
    """
    anchors = sorted(span.start for span in working.consumed if span.anchor)
    for start in anchors:
        if working.has_text_before(start):
            return 0, start
    return 0, len(working.title.text)


def _restore_separators(fragment: str) -> str:
    """Turn raw dots/underscores into spaces, keeping acronyms like S.H.I.E.L.D."""
    pieces: list[str] = []
    position = 0
    for match in ACRONYM_RE.finditer(fragment):
        pieces.append(SEPARATOR_RE.sub(" ", fragment[position : match.start()]))
        pieces.append(match.group().replace("_", " "))
        position = match.end()
    pieces.append(SEPARATOR_RE.sub(" ", fragment[position:]))
    return "".join(pieces)


def _tidy(text: str) -> str:
    previous = None
    while previous != text:
        previous = text
        text = EMPTY_BRACKETS_RE.sub(" ", text)
        text = " ".join(text.split())
        # A year anchor inside brackets leaves its opener behind
        text = text.strip(EDGE_PUNCTUATION).rstrip(OPENING_BRACKETS)
    return text


def resolve_title(working: WorkingTitle) -> str:
    """Return the display title in its original casing.

    Unconsumed characters of the title region are mapped back to the raw
    title, consumed spans become spaces, separators and leftover punctuation
    at the edges are trimmed and whitespace is collapsed.
    """
    title = working.title
    start, end = _title_region(working)

    fragments: list[str] = []
    run_start = None
    for index in range(start, end):
        free = working.is_free(index, index + 1)
        if free and run_start is None:
            run_start = index
        elif not free and run_start is not None:
            fragments.append(title.original(run_start, index))
            run_start = None
    if run_start is not None:
        fragments.append(title.original(run_start, end))

    return _tidy(" ".join(_restore_separators(fragment) for fragment in fragments))


def clean_title(display_title: str, articles: tuple[str, ...]) -> str:
    """Lowercase, drop a leading article and punctuation for lookups."""
    words = PUNCTUATION_RE.sub("", display_title.lower()).split()
    if len(words) > 1 and words[0] in articles:
        words = words[1:]
    return " ".join(words)


def count_numeric_tokens(display_title: str) -> int:
    return len(NUMERIC_TOKEN_RE.findall(display_title))
