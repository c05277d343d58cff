"""Diagnostic CLI entry point for release-decision."""

import json
import logging
import sys
from pathlib import Path

import click

from release_decision import __version__
from release_decision.config import Settings, get_settings
from release_decision.custom_formats import CompiledFormatSet, match_formats
from release_decision.models import Candidate, ConfigurationError, ParsedRelease
from release_decision.release_parser import ReleaseParser
from release_decision.release_selector import ReleaseSelector
from release_decision.snapshot import ConfigSnapshot, load_snapshot

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)


def _load_snapshot_file(path: Path) -> ConfigSnapshot:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read snapshot {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Snapshot {path} must contain a JSON object")
    return load_snapshot(data)


def _echo_release(release: ParsedRelease, parser: ReleaseParser) -> None:
    quality = release.quality
    click.echo(f"🎬 {release.raw_title}")
    click.echo(f"   Title: {release.series_or_artist_title} ({release.clean_title})")
    if release.year is not None:
        click.echo(f"   Year: {release.year}")
    if release.season is not None or release.episodes:
        episodes = ", ".join(str(episode) for episode in release.episodes) or "-"
        click.echo(f"   Season: {release.season}  Episodes: {episodes}")
    if release.absolute_episode is not None:
        version = f" v{release.version}" if release.version else ""
        click.echo(f"   Absolute episode: {release.absolute_episode}{version}")
    if release.air_date is not None:
        click.echo(f"   Air date: {release.air_date.isoformat()}")
    if release.special_type is not None:
        click.echo(f"   Special: {release.special_type.value}")
    click.echo(
        f"   Quality: {quality.source.value} {quality.resolution.value}"
        f" codec={quality.codec.value if quality.codec else '-'}"
        f" hdr={quality.hdr.value if quality.hdr else '-'}"
        f" modifier={quality.modifier.value if quality.modifier else '-'}"
    )
    if release.audio.codec or release.audio.channels:
        codec = release.audio.codec.value if release.audio.codec else "-"
        atmos = " atmos" if release.audio.atmos else ""
        click.echo(f"   Audio: {codec} {release.audio.channels or '-'}{atmos}")
    if release.languages:
        click.echo(f"   Languages: {', '.join(sorted(release.languages))}")
    if release.edition:
        click.echo(f"   Edition: {release.edition}")
    click.echo(
        f"   Group: {release.release_group or '-'}"
        f"  Hash: {release.release_hash or '-'}"
        f"  Batch: {release.is_batch}"
    )
    marker = "⚠️" if parser.requires_confirmation(release) else "✅"
    click.echo(f"   {marker} Confidence: {release.confidence}")


@click.group()
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Release Decision.

    Parses release titles and explains custom format matches and grab
    decisions for a configuration snapshot.
    """
    # Load configuration
    try:
        settings = get_settings()
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    logging.getLogger().setLevel(settings.log_level)
    ctx.obj = settings


@cli.command()
@click.argument("titles", nargs=-1, required=True)
@click.pass_obj
def parse(settings: Settings, titles: tuple[str, ...]) -> None:
    """Parse release TITLES and print the extracted fields."""
    parser = ReleaseParser(settings)
    for title in titles:
        _echo_release(parser.parse(title), parser)


@cli.command()
@click.argument(
    "snapshot_path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.argument("title")
@click.option("--size-mb", type=float, default=None, help="Release size in MB")
@click.pass_obj
def formats(
    settings: Settings, snapshot_path: Path, title: str, size_mb: float | None
) -> None:
    """Show which custom formats of SNAPSHOT_PATH match TITLE."""
    try:
        snapshot = _load_snapshot_file(snapshot_path)
    except ConfigurationError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    release = ReleaseParser(settings).parse(title)
    compiled = CompiledFormatSet(snapshot.custom_formats)
    matches = match_formats(release, title, compiled, size_mb)
    matched_ids = {match.format_id for match in matches}

    click.echo(f"🔍 {title}")
    for compiled_format in compiled:
        custom_format = compiled_format.format
        marker = "✅" if custom_format.id in matched_ids else "❌"
        click.echo(f"{marker} {custom_format.name}")
    for match in matches:
        for result in match.matched_conditions:
            condition = result.condition
            flags = "".join(
                flag
                for flag, enabled in (
                    (" required", condition.required),
                    (" negated", condition.negate),
                )
                if enabled
            )
            status = "pass" if result.matched else "fail"
            click.echo(
                f"   {match.name}: {condition.type.value} "
                f"/{condition.pattern}/{flags} -> {status}"
            )
    if not matches:
        click.echo("No custom formats matched")


@cli.command()
@click.argument(
    "snapshot_path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--candidate",
    "candidates",
    type=(str, float),
    multiple=True,
    required=True,
    help="Candidate release as TITLE SIZE_MB (repeatable)",
)
@click.option("--current-quality-id", type=int, default=None)
@click.option("--runtime", type=float, default=None, help="Runtime in minutes")
@click.pass_obj
def decide(
    settings: Settings,
    snapshot_path: Path,
    candidates: tuple[tuple[str, float], ...],
    current_quality_id: int | None,
    runtime: float | None,
) -> None:
    """Evaluate candidates against SNAPSHOT_PATH and print the best pick."""
    try:
        snapshot = _load_snapshot_file(snapshot_path)
    except ConfigurationError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    selector = ReleaseSelector(settings, snapshot)
    result = selector.select(
        [Candidate(title=title, size_mb=size) for title, size in candidates],
        current_quality_id,
        runtime_minutes=runtime,
    )

    for decision in result.decisions:
        reasons = "; ".join(decision.rejection_reasons)
        suffix = f" ({reasons})" if reasons else ""
        click.echo(
            f"{decision.outcome.value:>7} {decision.total_score:>8} "
            f"{decision.release.raw_title}{suffix}"
        )
    if result.best is not None:
        click.echo(f"✅ Best: {result.best.release.raw_title}")
    else:
        click.echo("❌ Nothing acceptable")


if __name__ == "__main__":
    cli()
