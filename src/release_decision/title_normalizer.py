"""Release title normalization and consumed-span bookkeeping.

Extractors never edit the title text. They mark spans of the normalized title
as consumed, and later extractors search a masked view in which consumed
characters are replaced by ``MASK`` so they can neither match nor bridge
across already-extracted tokens.
"""

import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

MASK = "\x1f"

# Trailing extensions treated as a container rather than part of the title
CONTAINER_EXTENSIONS: frozenset[str] = frozenset(
    {
        "mkv", "mp4", "avi", "m4v", "wmv", "mov", "mpg", "mpeg", "webm",
        "flv", "iso", "flac", "mp3", "m4a", "ogg", "nzb", "torrent",
    }
)

_EXTENSION_RE = re.compile(r"\.([A-Za-z0-9]{2,7})\s*$")
_BRACKET_RE = re.compile(r"\[[^\[\]]*\]|\([^()]*\)|\{[^{}]*\}")


def token_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a lowercase pattern that must stand alone as a token."""
    return re.compile(rf"(?<![a-z0-9])(?:{pattern})(?![a-z0-9])")


@dataclass(frozen=True)
class NormalizedTitle:
    """A raw title with unified separators and a map back to raw offsets."""

    raw: str
    text: str
    lower: str
    offsets: tuple[int, ...]  # offsets[i] is the raw index of text[i]
    brackets: tuple[tuple[int, int], ...]
    container: str | None = None

    @property
    def is_fansub_style(self) -> bool:
        """Fansub titles open with a bracketed group."""
        return self.text.startswith("[")

    def original(self, start: int, end: int) -> str:
        """Return the raw (original-cased, unnormalized) text for a span."""
        if start >= end:
            return ""
        return self.raw[self.offsets[start] : self.offsets[end - 1] + 1]


def _is_decimal_point(raw: str, index: int) -> bool:
    """Check for a dot between two lone digits, as in a 5.1 channel layout."""
    if raw[index] != "." or index == 0 or index + 1 >= len(raw):
        return False
    if not (raw[index - 1].isdigit() and raw[index + 1].isdigit()):
        return False
    if index >= 2 and raw[index - 2].isdigit():
        return False
    if index + 2 < len(raw) and raw[index + 2].isdigit():
        return False
    return True


def normalize_title(raw: str) -> NormalizedTitle:
    """Normalize separators of a raw release title.

    Dots and underscores become spaces (except decimal points between single
    digits), whitespace runs collapse to one space and a trailing container
    extension is split off. Casing is preserved; ``lower`` is a parallel
    lowercase view of the same length.

    Args:
        raw: Release title as received from the indexer

    Returns:
        NormalizedTitle; empty input yields an empty normalized title
    """
    end = len(raw)
    container = None
    match = _EXTENSION_RE.search(raw)
    if match and match.group(1).lower() in CONTAINER_EXTENSIONS:
        container = match.group(1).lower()
        end = match.start()

    chars: list[str] = []
    offsets: list[int] = []
    for index in range(end):
        char = raw[index]
        if char.isspace() or char == "_":
            char = " "
        elif char == "." and not _is_decimal_point(raw, index):
            char = " "

        if char == " " and (not chars or chars[-1] == " "):
            continue
        chars.append(char)
        offsets.append(index)

    while chars and chars[-1] == " ":
        chars.pop()
        offsets.pop()

    text = "".join(chars)
    brackets = tuple(m.span() for m in _BRACKET_RE.finditer(text))
    return NormalizedTitle(
        raw=raw,
        text=text,
        lower=text.lower(),
        offsets=tuple(offsets),
        brackets=brackets,
        container=container,
    )


@dataclass(frozen=True)
class Span:
    """A consumed region of the normalized title."""

    start: int
    end: int
    label: str
    anchor: bool = False  # Marks where the title region ends

    def overlaps(self, start: int, end: int) -> bool:
        return start < self.end and self.start < end


@dataclass(frozen=True)
class WorkingTitle:
    """Normalized title plus the spans consumed so far."""

    title: NormalizedTitle
    consumed: tuple[Span, ...] = ()

    @classmethod
    def from_raw(cls, raw: str) -> "WorkingTitle":
        return cls(normalize_title(raw))

    def masked(self, lower: bool = True) -> str:
        """Return the text with consumed characters replaced by MASK."""
        chars = list(self.title.lower if lower else self.title.text)
        for span in self.consumed:
            chars[span.start : span.end] = MASK * (span.end - span.start)
        return "".join(chars)

    def is_free(self, start: int, end: int) -> bool:
        return not any(span.overlaps(start, end) for span in self.consumed)

    def consume(
        self, start: int, end: int, label: str, anchor: bool = False
    ) -> "WorkingTitle":
        """Return a new working title with the span marked as consumed."""
        if start >= end:
            return self
        span = Span(start, end, label, anchor)
        return WorkingTitle(self.title, self.consumed + (span,))

    def finditer(
        self, pattern: re.Pattern[str], lower: bool = True, start_at: int = 0
    ) -> Iterator[re.Match[str]]:
        """Iterate matches over unconsumed text."""
        return pattern.finditer(self.masked(lower), start_at)

    def search(
        self, pattern: re.Pattern[str], lower: bool = True, start_at: int = 0
    ) -> re.Match[str] | None:
        return pattern.search(self.masked(lower), start_at)

    def first_anchor(self) -> int | None:
        """Start of the earliest anchor span, if any."""
        starts = [span.start for span in self.consumed if span.anchor]
        return min(starts) if starts else None

    def has_text_before(self, position: int) -> bool:
        """Check whether unconsumed alphanumeric text precedes a position."""
        prefix = self.masked()[:position]
        return any(char.isalnum() for char in prefix)


@dataclass(frozen=True)
class VocabularyEntry(Generic[T]):
    """One token pattern of an attribute vocabulary."""

    pattern: re.Pattern[str]
    value: T


def find_earliest(
    working: WorkingTitle,
    vocabulary: Sequence[VocabularyEntry[T]],
    lower: bool = True,
    start_at: int = 0,
) -> tuple[re.Match[str], T] | None:
    """Find the earliest vocabulary match in unconsumed text.

    Conflicting tokens of one category resolve by position: the match that
    starts first wins. Matches starting at the same position prefer the
    longer one, then vocabulary order.
    """
    masked = working.masked(lower)
    best: tuple[re.Match[str], T] | None = None
    for entry in vocabulary:
        match = entry.pattern.search(masked, start_at)
        if match is None:
            continue
        if best is None:
            best = (match, entry.value)
            continue
        current = best[0]
        if match.start() < current.start() or (
            match.start() == current.start() and match.end() > current.end()
        ):
            best = (match, entry.value)
    return best


ExtractedFields = dict[str, Any]
Extractor = Callable[[WorkingTitle], tuple[WorkingTitle, ExtractedFields]]
