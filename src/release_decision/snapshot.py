"""Typed configuration snapshots built from plain dicts (e.g. parsed JSON)."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from pydantic import TypeAdapter

from release_decision.custom_formats import format_from_trash
from release_decision.models import (
    ConfigurationError,
    CustomFormat,
    FormatScore,
    QualityDefinition,
    QualityProfile,
    Restriction,
)
from release_decision.quality_definitions import (
    DEFAULT_QUALITY_DEFINITIONS,
    default_profiles,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigSnapshot:
    """Everything the decision pipeline needs for one wanted item."""

    profile: QualityProfile | None = None
    definitions: tuple[QualityDefinition, ...] = DEFAULT_QUALITY_DEFINITIONS
    custom_formats: tuple[CustomFormat, ...] = ()
    format_scores: tuple[FormatScore, ...] = ()
    restrictions: tuple[Restriction, ...] = ()
    tag_ids: frozenset[int] = frozenset()


_SNAPSHOT_ADAPTER = TypeAdapter(ConfigSnapshot)


def _resolve_profile_name(name: str, definitions: Any) -> dict[str, Any]:
    """Expand a stock profile name into the profile's fields."""
    for profile in default_profiles(DEFAULT_QUALITY_DEFINITIONS):
        if profile.name.lower() == name.lower():
            if definitions is not None:
                logger.warning(
                    f"Stock profile '{name}' refers to the default quality "
                    "definitions; custom definitions must list their own profile"
                )
            return {
                "id": profile.id,
                "name": profile.name,
                "cutoff_quality_id": profile.cutoff_quality_id,
                "items": [
                    {"quality_id": item.quality_id, "enabled": item.enabled}
                    for item in profile.items
                ],
                "upgrade_allowed": profile.upgrade_allowed,
            }
    raise ConfigurationError(f"Unknown quality profile: {name}")


def load_snapshot(data: Mapping[str, Any]) -> ConfigSnapshot:
    """Validate a plain configuration mapping into a ConfigSnapshot.

    Keys follow the snapshot field names. ``profile`` may also be the name of
    a stock profile (``"HD-1080p"``), and ``trash_formats`` may hold TRaSH
    guides custom format documents, which are appended to ``custom_formats``.
    Missing ``definitions`` fall back to the default table.

    Args:
        data: Configuration mapping, typically loaded from JSON

    Returns:
        Validated ConfigSnapshot

    Raises:
        ConfigurationError: If any part of the configuration is invalid
    """
    payload = dict(data)
    trash_documents = payload.pop("trash_formats", []) or []

    if isinstance(payload.get("profile"), str):
        payload["profile"] = _resolve_profile_name(
            payload["profile"], payload.get("definitions")
        )

    try:
        snapshot = _SNAPSHOT_ADAPTER.validate_python(payload)
        if trash_documents:
            next_id = max((f.id for f in snapshot.custom_formats), default=0) + 1
            imported = tuple(
                format_from_trash(document, next_id + offset)
                for offset, document in enumerate(trash_documents)
            )
            snapshot = replace(
                snapshot, custom_formats=snapshot.custom_formats + imported
            )
    except ConfigurationError:
        raise
    except ValueError as e:
        # pydantic's ValidationError is a ValueError subclass
        raise ConfigurationError(f"Invalid configuration snapshot: {e}") from e

    logger.debug(
        f"Loaded snapshot: {len(snapshot.definitions)} definitions, "
        f"{len(snapshot.custom_formats)} custom formats"
    )
    return snapshot
