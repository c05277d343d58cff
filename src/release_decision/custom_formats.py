"""Custom format matching against parsed releases."""

import logging
import operator
import re
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from release_decision.attribute_extractor import LANGUAGE_NAMES
from release_decision.models import (
    AudioCodec,
    Codec,
    Condition,
    ConditionResult,
    ConditionType,
    ConfigurationError,
    CustomFormat,
    FormatMatch,
    ParsedRelease,
    QualityModifier,
    Resolution,
    Source,
)

logger = logging.getLogger(__name__)

SizeTest = Callable[[float], bool]

SIZE_RANGE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)\s*$")
SIZE_COMPARISON_RE = re.compile(r"^\s*(>=|<=|>|<)\s*(\d+(?:\.\d+)?)\s*$")

_COMPARISONS: dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

# Alternative spellings a pattern may be written against
SOURCE_ALIASES: dict[Source, tuple[str, ...]] = {
    Source.WEBDL: ("web-dl", "web"),
    Source.WEBRIP: ("web-rip",),
    Source.BLURAY: ("blu-ray",),
    Source.TV: ("hdtv", "television"),
    Source.TELESYNC: ("ts",),
    Source.TELECINE: ("tc",),
}
CODEC_ALIASES: dict[Codec, tuple[str, ...]] = {
    Codec.X264: ("h264", "h.264", "avc"),
    Codec.X265: ("h265", "h.265", "hevc"),
}
AUDIO_CODEC_ALIASES: dict[AudioCodec, tuple[str, ...]] = {
    AudioCodec.DTS_HD: ("dts-hd", "dts-hd ma"),
    AudioCodec.DTS_X: ("dts-x", "dts:x"),
    AudioCodec.EAC3: ("ddp", "dd+", "e-ac-3"),
    AudioCodec.AC3: ("dd",),
}

# TRaSH guides implementation names (lowercased) to condition types
TRASH_IMPLEMENTATIONS: dict[str, ConditionType] = {
    "releasetitlespecification": ConditionType.RELEASE_NAME,
    "releasegroupspecification": ConditionType.RELEASE_GROUP,
    "sourcespecification": ConditionType.SOURCE,
    "resolutionspecification": ConditionType.RESOLUTION,
    "indexerflagspecification": ConditionType.INDEXER_FLAG,
    "languagespecification": ConditionType.LANGUAGE,
    "sizespecification": ConditionType.SIZE,
}


def parse_size_expression(expression: str) -> SizeTest:
    """Parse a size expression such as ``>500``, ``<=1000`` or ``500-1000``.

    Ranges are inclusive at both ends.

    Raises:
        ValueError: If the expression has none of the supported shapes
    """
    match = SIZE_RANGE_RE.match(expression)
    if match:
        low, high = float(match.group(1)), float(match.group(2))
        return lambda size_mb: low <= size_mb <= high

    match = SIZE_COMPARISON_RE.match(expression)
    if match:
        compare = _COMPARISONS[match.group(1)]
        limit = float(match.group(2))
        return lambda size_mb: compare(size_mb, limit)

    raise ValueError(f"invalid size expression: {expression!r}")


@dataclass(frozen=True)
class CompiledCondition:
    """A condition with its regex or size test prepared once."""

    condition: Condition
    regex: re.Pattern[str] | None = None
    size_test: SizeTest | None = None
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CompiledFormat:
    format: CustomFormat
    conditions: tuple[CompiledCondition, ...]


def compile_condition(condition: Condition) -> CompiledCondition:
    """Prepare a condition; an invalid pattern is recorded, never raised."""
    if condition.type is ConditionType.SIZE:
        try:
            return CompiledCondition(
                condition, size_test=parse_size_expression(condition.pattern)
            )
        except ValueError as e:
            return CompiledCondition(condition, error=str(e))
    try:
        return CompiledCondition(
            condition, regex=re.compile(condition.pattern, re.IGNORECASE)
        )
    except re.error as e:
        return CompiledCondition(
            condition, error=f"invalid regex {condition.pattern!r}: {e}"
        )


class CompiledFormatSet:
    """Custom formats with every condition compiled once at load time.

    Formats without conditions are excluded. Formats with invalid conditions
    are kept; their bad conditions evaluate to false. Both cases are logged
    once here rather than on every evaluation.
    """

    def __init__(self, formats: Iterable[CustomFormat]):
        compiled: list[CompiledFormat] = []
        self.excluded_ids: list[int] = []
        self.invalid_ids: list[int] = []

        for custom_format in formats:
            if not custom_format.conditions:
                logger.warning(
                    f"Custom format '{custom_format.name}' ({custom_format.id}) "
                    "has no conditions and is excluded"
                )
                self.excluded_ids.append(custom_format.id)
                continue

            conditions = tuple(
                compile_condition(condition) for condition in custom_format.conditions
            )
            errors = [c.error for c in conditions if c.error is not None]
            if errors:
                logger.warning(
                    f"Custom format '{custom_format.name}' ({custom_format.id}) "
                    f"has invalid conditions that never match: {'; '.join(errors)}"
                )
                self.invalid_ids.append(custom_format.id)
            compiled.append(CompiledFormat(custom_format, conditions))

        self.formats: tuple[CompiledFormat, ...] = tuple(compiled)

    def __len__(self) -> int:
        return len(self.formats)

    def __iter__(self) -> Iterator[CompiledFormat]:
        return iter(self.formats)


def _with_aliases(value: str, aliases: Sequence[str]) -> list[str]:
    return [value, *aliases]


def condition_values(
    condition_type: ConditionType,
    release: ParsedRelease,
    raw_title: str,
    indexer_flags: frozenset[str] = frozenset(),
) -> list[str]:
    """Collect the strings a condition of the given type is tested against.

    Attributes the parser did not find fall back to the raw title, except the
    release group, which has nothing to test when absent.
    """
    quality = release.quality
    audio = release.audio

    if condition_type is ConditionType.RELEASE_GROUP:
        return [release.release_group] if release.release_group else []

    if condition_type is ConditionType.SOURCE:
        values: list[str] = []
        if quality.source is not Source.UNKNOWN:
            values = _with_aliases(
                quality.source.value, SOURCE_ALIASES.get(quality.source, ())
            )
        if quality.modifier is QualityModifier.REMUX:
            values.append(Source.REMUX.value)
        return values or [raw_title]

    if condition_type is ConditionType.RESOLUTION:
        if quality.resolution is Resolution.UNKNOWN:
            return [raw_title]
        return [quality.resolution.value, quality.resolution.value.rstrip("p")]

    if condition_type is ConditionType.CODEC:
        if quality.codec is None:
            return [raw_title]
        return _with_aliases(quality.codec.value, CODEC_ALIASES.get(quality.codec, ()))

    if condition_type is ConditionType.AUDIO_CODEC:
        if audio.codec is None:
            return [raw_title]
        return _with_aliases(
            audio.codec.value, AUDIO_CODEC_ALIASES.get(audio.codec, ())
        )

    if condition_type is ConditionType.AUDIO_CHANNELS:
        return [audio.channels] if audio.channels else [raw_title]

    if condition_type is ConditionType.LANGUAGE:
        if not release.languages:
            return [raw_title]
        codes = sorted(release.languages)
        return codes + [LANGUAGE_NAMES.get(code, code) for code in codes]

    if condition_type is ConditionType.EDITION:
        return [release.edition] if release.edition else [raw_title]

    if condition_type is ConditionType.INDEXER_FLAG:
        return sorted(indexer_flags) if indexer_flags else [raw_title]

    return [raw_title]


def evaluate_condition(
    compiled: CompiledCondition,
    release: ParsedRelease,
    raw_title: str,
    size_mb: float | None = None,
    indexer_flags: frozenset[str] = frozenset(),
) -> bool:
    """Evaluate one condition, applying ``negate`` to the raw result.

    An invalid condition is false whatever its ``negate`` flag says.
    """
    if not compiled.is_valid:
        return False

    condition = compiled.condition
    if compiled.size_test is not None:
        matched = size_mb is not None and compiled.size_test(size_mb)
    elif compiled.regex is not None:
        values = condition_values(condition.type, release, raw_title, indexer_flags)
        matched = any(compiled.regex.search(value) for value in values)
    else:
        matched = False
    return matched != condition.negate


def is_format_matched(results: Sequence[ConditionResult]) -> bool:
    """All required conditions pass and, if any optional ones exist, one passes."""
    if not results:
        return False
    required = [r.matched for r in results if r.condition.required]
    optional = [r.matched for r in results if not r.condition.required]
    if not all(required):
        return False
    return not optional or any(optional)


def match_formats(
    release: ParsedRelease,
    raw_title: str,
    formats: CompiledFormatSet | Sequence[CustomFormat],
    size_mb: float | None = None,
    indexer_flags: frozenset[str] = frozenset(),
) -> list[FormatMatch]:
    """Match a parsed release against custom formats.

    Args:
        release: Parsed release
        raw_title: Title as received, used by releaseName conditions
        formats: Compiled format set, or raw formats to compile on the fly
        size_mb: Release size for size conditions; unknown sizes never match
        indexer_flags: Flags reported by the indexer (freeleech, internal, ...)

    Returns:
        Matched formats in configuration order, with per-condition results
    """
    if not isinstance(formats, CompiledFormatSet):
        formats = CompiledFormatSet(formats)

    matches: list[FormatMatch] = []
    for compiled_format in formats.formats:
        results = tuple(
            ConditionResult(
                condition=compiled.condition,
                matched=evaluate_condition(
                    compiled, release, raw_title, size_mb, indexer_flags
                ),
            )
            for compiled in compiled_format.conditions
        )
        if is_format_matched(results):
            matches.append(
                FormatMatch(
                    format_id=compiled_format.format.id,
                    name=compiled_format.format.name,
                    matched_conditions=results,
                )
            )
    return matches


def _trash_fields(fields: Any) -> dict[str, Any]:
    """TRaSH fields come as a mapping or as a list of ``{name, value}``."""
    if isinstance(fields, Mapping):
        return dict(fields)
    if isinstance(fields, list):
        return {
            field["name"]: field.get("value")
            for field in fields
            if isinstance(field, Mapping) and "name" in field
        }
    return {}


def format_from_trash(document: Mapping[str, Any], format_id: int) -> CustomFormat:
    """Convert a TRaSH guides custom format document into a CustomFormat.

    Unknown implementations are imported as release name conditions. Size
    specifications become ``min-max`` range expressions.

    Raises:
        ConfigurationError: If the document has no name or specifications
    """
    name = document.get("name")
    specifications = document.get("specifications")
    if not name or not isinstance(specifications, list):
        raise ConfigurationError("TRaSH format needs a name and specifications")

    conditions: list[Condition] = []
    for spec in specifications:
        implementation = str(spec.get("implementation", "")).lower()
        condition_type = TRASH_IMPLEMENTATIONS.get(
            implementation, ConditionType.RELEASE_NAME
        )
        fields = _trash_fields(spec.get("fields"))
        if condition_type is ConditionType.SIZE:
            pattern = f"{fields.get('min', 0)}-{fields.get('max', 0)}"
        else:
            pattern = str(fields.get("value", ""))
        conditions.append(
            Condition(
                type=condition_type,
                pattern=pattern,
                negate=bool(spec.get("negate", False)),
                required=bool(spec.get("required", False)),
            )
        )

    return CustomFormat(
        id=format_id,
        name=str(name),
        conditions=tuple(conditions),
        include_when_renaming=bool(
            document.get("includeCustomFormatWhenRenaming", False)
        ),
    )
