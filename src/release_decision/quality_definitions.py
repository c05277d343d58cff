"""Default quality definitions and quality profiles."""

from collections.abc import Sequence

from release_decision.models import (
    ConfigurationError,
    QualityDefinition,
    QualityProfile,
    QualityProfileItem,
    Resolution,
    Source,
)

# Sizes are MB per minute of runtime; max_size None means unlimited
DEFAULT_QUALITY_DEFINITIONS: tuple[QualityDefinition, ...] = (
    QualityDefinition(0, "Unknown", Source.UNKNOWN, Resolution.UNKNOWN, 0, 100),
    QualityDefinition(
        1, "WORKPRINT", Source.WORKPRINT, Resolution.UNKNOWN, 0, 100, weight=1
    ),
    QualityDefinition(2, "CAM", Source.CAM, Resolution.UNKNOWN, 0, 100, weight=2),
    QualityDefinition(
        3, "TELESYNC", Source.TELESYNC, Resolution.UNKNOWN, 0, 100, weight=3
    ),
    QualityDefinition(
        4, "TELECINE", Source.TELECINE, Resolution.UNKNOWN, 0, 100, weight=4
    ),
    QualityDefinition(5, "DVD", Source.DVD, Resolution.R480P, 2, 100, 35, 10),
    QualityDefinition(6, "DVD-R", Source.DVD, Resolution.R576P, 2, 100, 35, 11),
    QualityDefinition(7, "SDTV", Source.TV, Resolution.R480P, 1, 100, 15, 15),
    QualityDefinition(8, "HDTV-720p", Source.TV, Resolution.R720P, 3, 125, 40, 20),
    QualityDefinition(
        9, "WEBRip-720p", Source.WEBRIP, Resolution.R720P, 3, 130, 45, 21
    ),
    QualityDefinition(
        10, "WEB-DL 720p", Source.WEBDL, Resolution.R720P, 3, 130, 50, 22
    ),
    QualityDefinition(
        11, "BluRay-720p", Source.BLURAY, Resolution.R720P, 4, 130, 60, 23
    ),
    QualityDefinition(12, "HDTV-1080p", Source.TV, Resolution.R1080P, 4, 130, 50, 30),
    QualityDefinition(
        13, "WEBRip-1080p", Source.WEBRIP, Resolution.R1080P, 4, 130, 60, 31
    ),
    QualityDefinition(
        14, "WEB-DL 1080p", Source.WEBDL, Resolution.R1080P, 4, 130, 70, 32
    ),
    QualityDefinition(
        15, "BluRay-1080p", Source.BLURAY, Resolution.R1080P, 5, 155, 80, 33
    ),
    QualityDefinition(
        16, "Remux-1080p", Source.REMUX, Resolution.R1080P, 10, 400, 200, 34
    ),
    QualityDefinition(
        17, "HDTV-2160p", Source.TV, Resolution.R2160P, 10, 350, 100, 40
    ),
    QualityDefinition(
        18, "WEBRip-2160p", Source.WEBRIP, Resolution.R2160P, 10, 350, 120, 41
    ),
    QualityDefinition(
        19, "WEB-DL 2160p", Source.WEBDL, Resolution.R2160P, 10, 350, 140, 42
    ),
    QualityDefinition(
        20, "BluRay-2160p", Source.BLURAY, Resolution.R2160P, 15, 400, 180, 43
    ),
    QualityDefinition(
        21, "Remux-2160p", Source.REMUX, Resolution.R2160P, 30, 750, 400, 44
    ),
)

# Profile name -> (cutoff, allowed qualities from least to most preferred)
DEFAULT_PROFILE_LAYOUTS: dict[str, tuple[str, tuple[str, ...]]] = {
    "SD": ("DVD", ("SDTV", "DVD", "DVD-R")),
    "HD-720p": (
        "BluRay-720p",
        ("HDTV-720p", "WEB-DL 720p", "WEBRip-720p", "BluRay-720p"),
    ),
    "HD-1080p": (
        "BluRay-1080p",
        (
            "HDTV-1080p",
            "WEB-DL 1080p",
            "WEBRip-1080p",
            "BluRay-1080p",
            "Remux-1080p",
        ),
    ),
    "Ultra-HD": (
        "BluRay-2160p",
        (
            "HDTV-2160p",
            "WEB-DL 2160p",
            "WEBRip-2160p",
            "BluRay-2160p",
            "Remux-2160p",
        ),
    ),
}


def definition_by_name(
    name: str, definitions: Sequence[QualityDefinition] = DEFAULT_QUALITY_DEFINITIONS
) -> QualityDefinition:
    """Look up a quality definition by name (case-insensitive).

    Raises:
        ConfigurationError: If no definition has that name
    """
    for definition in definitions:
        if definition.name.lower() == name.lower():
            return definition
    raise ConfigurationError(f"Unknown quality definition: {name}")


def build_profile(
    profile_id: int,
    name: str,
    cutoff: str,
    qualities: Sequence[str],
    definitions: Sequence[QualityDefinition] = DEFAULT_QUALITY_DEFINITIONS,
    upgrade_allowed: bool = True,
) -> QualityProfile:
    """Build a profile from quality names listed least preferred first."""
    items = tuple(
        QualityProfileItem(definition_by_name(quality, definitions).id)
        for quality in reversed(qualities)
    )
    return QualityProfile(
        id=profile_id,
        name=name,
        cutoff_quality_id=definition_by_name(cutoff, definitions).id,
        items=items,
        upgrade_allowed=upgrade_allowed,
    )


def default_profiles(
    definitions: Sequence[QualityDefinition] = DEFAULT_QUALITY_DEFINITIONS,
) -> list[QualityProfile]:
    """Build the stock profiles: Any, SD, HD-720p, HD-1080p and Ultra-HD."""
    by_weight = sorted(definitions, key=lambda definition: definition.weight)
    profiles = [
        build_profile(
            1,
            "Any",
            "WEB-DL 1080p",
            [definition.name for definition in by_weight],
            definitions,
        )
    ]
    for profile_id, (name, (cutoff, qualities)) in enumerate(
        DEFAULT_PROFILE_LAYOUTS.items(), start=2
    ):
        profiles.append(build_profile(profile_id, name, cutoff, qualities, definitions))
    return profiles
