import asyncio
import json
from dataclasses import asdict, replace
from pathlib import Path
from typing import Optional

import typer
from PIL import Image

from .config import Settings, SettingsError, SettingsStore, parse_value
from .logging import get_logger
from .capture.engine import CaptureEngine, CaptureError, StopReason
from .capture.frame import Frame
from .capture.keys import ArrowKey
from .capture.screen import ScreenCaptureError
from .dedup.detector import DuplicateDetector, DEFAULT_THRESHOLD
from .dedup.distance import combined_distance
from .dedup.fingerprint import Fingerprint

app = typer.Typer(help="shotbar – automated screenshots with duplicate detection", no_args_is_help=True)
config_app = typer.Typer(help="Show or change stored settings", no_args_is_help=True)
app.add_typer(config_app, name="config")


def _load_settings(settings_file: Optional[Path]) -> Settings:
    return SettingsStore(settings_file).load()


@app.command()
def shot(
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Destination folder (defaults to stored setting)"),
    prefix: Optional[str] = typer.Option(None, help="Filename prefix"),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON file"),
) -> None:
    """Take a single screenshot."""
    logger = get_logger(__name__)

    try:
        settings = _load_settings(settings_file)
        if out is not None:
            settings = replace(settings, save_folder_path=str(out))
        if prefix is not None:
            settings = replace(settings, filename_prefix=prefix)

        path = CaptureEngine(settings).take_single_shot()
    except (SettingsError, ScreenCaptureError, OSError) as exc:
        logger.error(f"Single shot failed: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(str(path))


@app.command()
def run(
    max_count: Optional[int] = typer.Option(None, help="Maximum number of captures (1-999)"),
    interval: Optional[float] = typer.Option(None, help="Seconds between captures"),
    initial_delay: Optional[float] = typer.Option(None, help="Seconds to wait before the first capture (max 10)"),
    detect_duplicate: Optional[bool] = typer.Option(
        None, "--detect-duplicate/--no-detect-duplicate", help="Stop when a capture matches the previous one"
    ),
    threshold: Optional[float] = typer.Option(None, help="Duplicate distance threshold (0.00-0.50, 0 = exact match)"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Destination folder"),
    prefix: Optional[str] = typer.Option(None, help="Filename prefix"),
    key: Optional[str] = typer.Option(None, help="Arrow key sent after each capture: left, right, down, up"),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON file"),
) -> None:
    """
    Run an auto-capture session.

    Options override the stored settings for this run only.
    """
    logger = get_logger(__name__)

    try:
        settings = _load_settings(settings_file)
    except SettingsError as exc:
        logger.error(f"{exc}")
        raise typer.Exit(code=1) from exc

    overrides = {}
    if max_count is not None:
        overrides["max_count"] = max_count
    if interval is not None:
        overrides["interval_delay"] = interval
    if initial_delay is not None:
        overrides["initial_delay"] = initial_delay
    if detect_duplicate is not None:
        overrides["detect_duplicate"] = detect_duplicate
    if threshold is not None:
        overrides["duplicate_threshold"] = threshold
    if out is not None:
        overrides["save_folder_path"] = str(out)
    if prefix is not None:
        overrides["filename_prefix"] = prefix
    if key is not None:
        try:
            overrides["arrow_key"] = ArrowKey.from_name(key).value
        except ValueError as exc:
            logger.error(f"{exc}")
            raise typer.Exit(code=1) from exc

    settings = replace(settings, **overrides).clamped()

    def countdown(remaining: int, sound: str) -> None:
        typer.echo(f"Starting in {remaining}...")

    engine = CaptureEngine(settings, on_countdown=countdown)

    try:
        result = asyncio.run(engine.run())
    except CaptureError as exc:
        logger.error(f"{exc}")
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        typer.echo("Interrupted")
        raise typer.Exit(code=130)

    typer.echo(f"Saved {result.count} image(s) to {result.directory} ({result.reason.value})")
    if result.reason is StopReason.ERROR:
        raise typer.Exit(code=1)


@app.command()
def compare(
    image_a: Path = typer.Argument(..., exists=True, readable=True, help="Earlier image"),
    image_b: Path = typer.Argument(..., exists=True, readable=True, help="Later image"),
    threshold: float = typer.Option(DEFAULT_THRESHOLD, help="Duplicate distance threshold"),
) -> None:
    """Check whether IMAGE_B would stop a capture run that just saved IMAGE_A."""
    logger = get_logger(__name__)

    frames = []
    for path in (image_a, image_b):
        try:
            with Image.open(path) as img:
                frames.append(Frame.from_image(img))
        except OSError as exc:
            logger.error(f"Cannot read image {path}: {exc}")
            raise typer.Exit(code=1) from exc

    distances = []

    def recording_distance(current: Fingerprint, previous: Fingerprint) -> float:
        distance = combined_distance(current, previous)
        distances.append(distance)
        return distance

    async def verdict() -> bool:
        detector = DuplicateDetector(threshold=threshold, distance=recording_distance)
        duplicate = False
        for frame in frames:
            duplicate = await detector.is_duplicate(frame)
        return duplicate

    duplicate = asyncio.run(verdict())

    if distances:
        typer.echo(f"Distance: {distances[-1]:.4f}")
    else:
        typer.echo("Distance: unavailable")
    typer.echo(f"Threshold: {threshold:.4f}")
    typer.echo("Duplicate" if duplicate else "Different")


@config_app.command("show")
def config_show(
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON file"),
) -> None:
    """Print the stored settings as JSON."""
    logger = get_logger(__name__)
    try:
        settings = _load_settings(settings_file)
    except SettingsError as exc:
        logger.error(f"{exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(json.dumps(asdict(settings), indent=2))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name, e.g. duplicate_threshold"),
    value: str = typer.Argument(..., help="New value"),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON file"),
) -> None:
    """Change one stored setting. Values are clamped to their allowed range."""
    logger = get_logger(__name__)
    store = SettingsStore(settings_file)
    try:
        settings = store.update(**{key: parse_value(key, value)})
    except SettingsError as exc:
        logger.error(f"{exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(f"{key} = {getattr(settings, key)}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
