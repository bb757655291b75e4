"""Create the plugin directory tree, listing-prevention markers and seed assets."""

from __future__ import annotations

from pathlib import Path

from build_events import ErrorKind, EventLog, PipelineError
from plugin_config import PluginConfig


def ensure_marker(directory: Path, config: PluginConfig, events: EventLog) -> bool:
    """Write the no-listing marker into ``directory`` if it is absent.

    Returns:
        True if the marker was written on this call
    """
    marker = directory / config.marker_name
    if marker.exists():
        events.debug(f"{config.marker_name} already exists in: {directory}")
        return False

    try:
        marker.write_text(config.marker_content, encoding="utf-8")
    except OSError as e:
        raise PipelineError(
            ErrorKind.FILESYSTEM, f"Failed to create {config.marker_name} in: {directory}", [str(e)]
        ) from e

    events.debug(f"Created {config.marker_name} in: {directory}")
    return True


def provision_directories(config: PluginConfig, events: EventLog) -> list[Path]:
    """Ensure every required directory exists and holds a marker file.

    Returns:
        Directories created on this call (empty when already provisioned)

    Raises:
        PipelineError: FILESYSTEM kind on any create failure (no retry)
    """
    created: list[Path] = []

    for directory in config.required_directories:
        if directory.is_dir():
            events.debug(f"Directory already exists: {directory}")
        else:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PipelineError(
                    ErrorKind.FILESYSTEM, f"Failed to create directory: {directory}", [str(e)]
                ) from e
            events.info(f"Created directory: {directory}")
            created.append(directory)

        ensure_marker(directory, config, events)

    return created


def seed_asset(path: Path, content: str, events: EventLog) -> bool:
    """Write ``content`` to ``path`` only if the file does not exist yet.

    Returns:
        True if the file was written, False if it already existed
    """
    if path.exists():
        events.debug(f"Asset already exists: {path}")
        return False

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise PipelineError(ErrorKind.FILESYSTEM, f"Failed to create asset: {path}", [str(e)]) from e

    events.info(f"Created asset: {path}")
    return True


def seed_assets(config: PluginConfig, events: EventLog) -> list[Path]:
    """Seed every configured baseline asset. Returns the files written."""
    return [path for path, content in config.seed_files.items() if seed_asset(path, content, events)]


def prepare_plugin_tree(config: PluginConfig, events: EventLog) -> None:
    """Provision directories then seed assets; safe to run repeatedly."""
    provision_directories(config, events)
    seed_assets(config, events)
