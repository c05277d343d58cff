"""Data models for release-decision."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class ConfigurationError(ValueError):
    """Raised when a configuration value cannot be constructed."""


class Resolution(str, Enum):
    """Video resolution tiers."""

    UNKNOWN = "unknown"
    R360P = "360p"
    R480P = "480p"
    R576P = "576p"
    R720P = "720p"
    R1080P = "1080p"
    R2160P = "2160p"


class Source(str, Enum):
    """Release source. REMUX is only produced for definition lookup."""

    UNKNOWN = "unknown"
    WORKPRINT = "workprint"
    CAM = "cam"
    TELESYNC = "telesync"
    TELECINE = "telecine"
    DVD = "dvd"
    TV = "tv"
    WEBRIP = "webrip"
    WEBDL = "webdl"
    BLURAY = "bluray"
    REMUX = "remux"


class Codec(str, Enum):
    X264 = "x264"
    X265 = "x265"
    XVID = "xvid"
    AV1 = "av1"
    VP9 = "vp9"
    MPEG2 = "mpeg2"


class HdrFormat(str, Enum):
    DOLBY_VISION = "dv"
    HDR10_PLUS = "hdr10plus"
    HDR10 = "hdr10"
    HDR = "hdr"
    HLG = "hlg"


class QualityModifier(str, Enum):
    REMUX = "remux"
    PROPER = "proper"
    REPACK = "repack"
    REAL = "real"


class AudioCodec(str, Enum):
    AAC = "aac"
    AC3 = "ac3"
    EAC3 = "eac3"
    DTS = "dts"
    DTS_HD = "dtshd"
    DTS_X = "dtsx"
    TRUEHD = "truehd"
    FLAC = "flac"
    MP3 = "mp3"
    OPUS = "opus"
    PCM = "pcm"


class SpecialType(str, Enum):
    OVA = "ova"
    ONA = "ona"
    SPECIAL = "special"
    RECAP = "recap"
    MOVIE_EDITION = "movieEdition"


class ConditionType(str, Enum):
    """Fields a custom format condition can test."""

    RELEASE_NAME = "releaseName"
    RELEASE_GROUP = "releaseGroup"
    SOURCE = "source"
    RESOLUTION = "resolution"
    CODEC = "codec"
    AUDIO_CODEC = "audioCodec"
    AUDIO_CHANNELS = "audioChannels"
    LANGUAGE = "language"
    EDITION = "edition"
    SIZE = "size"
    INDEXER_FLAG = "indexerFlag"


class Outcome(str, Enum):
    GRAB = "grab"
    UPGRADE = "upgrade"
    REJECT = "reject"


class Protocol(str, Enum):
    USENET = "usenet"
    TORRENT = "torrent"


class ItemStatus(str, Enum):
    """Wanted-item status used to pick a search cooldown."""

    AIRED_MISSING = "airedMissing"
    UPCOMING = "upcoming"
    CONTINUING_RECENT = "continuingRecent"
    ENDED_OLD = "endedOld"
    MOVIE_RELEASED = "movieReleased"
    MOVIE_PRE_RELEASE = "moviePreRelease"
    ALBUM_RELEASED = "albumReleased"
    ANIME_SIMULCAST = "animeSimulcast"


class CooldownPhase(str, Enum):
    IDLE = "idle"
    COOLING = "cooling"
    READY = "ready"


@dataclass(frozen=True)
class Quality:
    """Video quality attributes extracted from a release title."""

    resolution: Resolution = Resolution.UNKNOWN
    source: Source = Source.UNKNOWN
    codec: Codec | None = None
    hdr: HdrFormat | None = None
    modifier: QualityModifier | None = None

    @property
    def definition_source(self) -> Source:
        """Source used to look up a quality definition (remux is its own tier)."""
        if self.modifier is QualityModifier.REMUX:
            return Source.REMUX
        return self.source


@dataclass(frozen=True)
class AudioInfo:
    """Audio attributes extracted from a release title."""

    codec: AudioCodec | None = None
    channels: str | None = None  # "2.0", "5.1", "7.1"
    atmos: bool = False


@dataclass(frozen=True)
class ParsedRelease:
    """Immutable result of parsing one release title."""

    raw_title: str
    series_or_artist_title: str = ""
    clean_title: str = ""
    year: int | None = None

    # Episode identity
    season: int | None = None
    episodes: tuple[int, ...] = ()
    absolute_episode: int | None = None
    air_date: date | None = None
    special_type: SpecialType | None = None

    quality: Quality = field(default_factory=Quality)
    audio: AudioInfo = field(default_factory=AudioInfo)
    languages: frozenset[str] = frozenset()  # ISO-639-1, empty means unknown

    release_group: str | None = None
    release_hash: str | None = None
    version: int | None = None
    edition: str | None = None
    container: str | None = None

    is_batch: bool = False
    confidence: int = 0

    @property
    def has_episode_identity(self) -> bool:
        return (
            bool(self.episodes)
            or self.absolute_episode is not None
            or self.air_date is not None
        )


@dataclass(frozen=True)
class QualityDefinition:
    """One named quality tier. Sizes are MB per minute of runtime."""

    id: int
    name: str
    source: Source
    resolution: Resolution
    min_size: float = 0.0
    max_size: float | None = None  # None means unlimited
    preferred_size: float | None = None
    weight: int = 0


@dataclass(frozen=True)
class QualityProfileItem:
    quality_id: int
    enabled: bool = True


@dataclass(frozen=True)
class QualityProfile:
    """Ordered quality preferences; index 0 is the most preferred item."""

    id: int
    name: str
    cutoff_quality_id: int
    items: tuple[QualityProfileItem, ...]
    upgrade_allowed: bool = True

    def __post_init__(self) -> None:
        enabled_ids = {item.quality_id for item in self.items if item.enabled}
        if self.cutoff_quality_id not in enabled_ids:
            raise ConfigurationError(
                f"Quality profile '{self.name}': cutoff quality "
                f"{self.cutoff_quality_id} is not an enabled item"
            )

    def index_of(self, quality_id: int) -> int | None:
        """Return the position of a quality in this profile, or None."""
        for index, item in enumerate(self.items):
            if item.quality_id == quality_id:
                return index
        return None

    def is_enabled(self, quality_id: int) -> bool:
        return any(
            item.quality_id == quality_id and item.enabled for item in self.items
        )

    def rank_of(self, quality_id: int) -> int:
        """Preference rank of a quality; higher is better, 0 when absent."""
        index = self.index_of(quality_id)
        if index is None:
            return 0
        return len(self.items) - index


@dataclass(frozen=True)
class Condition:
    """A single custom format test."""

    type: ConditionType
    pattern: str
    negate: bool = False
    required: bool = False


@dataclass(frozen=True)
class CustomFormat:
    id: int
    name: str
    conditions: tuple[Condition, ...] = ()
    include_when_renaming: bool = False


@dataclass(frozen=True)
class FormatScore:
    """Score of one custom format within one quality profile."""

    profile_id: int
    format_id: int
    score: int


@dataclass(frozen=True)
class Restriction:
    """Required/forbidden release terms, optionally scoped to tags."""

    must_contain: tuple[str, ...] = ()
    must_not_contain: tuple[str, ...] = ()
    scope_tag_ids: frozenset[int] = frozenset()
    name: str = ""


@dataclass(frozen=True)
class RestrictionResult:
    allowed: bool
    reason: str | None = None


@dataclass(frozen=True)
class ConditionResult:
    condition: Condition
    matched: bool


@dataclass(frozen=True)
class FormatMatch:
    """A custom format that matched a release, with per-condition results."""

    format_id: int
    name: str
    matched_conditions: tuple[ConditionResult, ...]


@dataclass(frozen=True)
class MatchedFormat:
    format_id: int
    score: int


@dataclass(frozen=True)
class Candidate:
    """A release offered by an indexer search."""

    title: str
    size_mb: float
    protocol: Protocol = Protocol.TORRENT
    indexer_id: int | None = None
    published_at: datetime | None = None
    indexer_flags: frozenset[str] = frozenset()


@dataclass(frozen=True)
class GrabDecision:
    """Outcome of evaluating one release against a quality profile."""

    release: ParsedRelease
    outcome: Outcome
    size_mb: float = 0.0
    quality_definition: QualityDefinition | None = None
    matched_formats: tuple[MatchedFormat, ...] = ()
    quality_rank: int = 0
    format_score: int = 0
    total_score: int = 0
    rejection_reasons: tuple[str, ...] = ()
    skipped: bool = False  # Malformed candidate, never scored

    @property
    def accepted(self) -> bool:
        return self.outcome in (Outcome.GRAB, Outcome.UPGRADE)


@dataclass(frozen=True)
class SelectionResult:
    """Best pick among candidates for one wanted item."""

    best: GrabDecision | None
    decisions: tuple[GrabDecision, ...]
    rejection_reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class ItemStatusInfo:
    """Status of a wanted item plus its air/release date when known."""

    status: ItemStatus
    reference_date: datetime | None = None


@dataclass
class CooldownState:
    """Search throttle state of one wanted item."""

    item_id: str
    last_search_at: datetime
    next_allowed_at: datetime
    status_at_last_computation: ItemStatus
