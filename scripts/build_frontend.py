#!/usr/bin/env -S uv run --script --quiet
# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "jsonschema>=4.20.0",
#   "pyyaml>=6.0.0",
#   "rich>=13.0.0",
# ]
# ///
"""
Build the React front end of the WordPress plugin.

Pipeline:
1. Probe for the optional minifier and warn about duplicate plugin folders
2. Create the plugin directory tree, index.php markers and seed assets
3. Clean stale files out of the build directory (markers and subfolders are kept)
4. Run the bundler; if it fails, retry once in development mode (unminified)
5. Verify the build output (advisory unless --strict)

Usage:
    ./scripts/build_frontend.py
    ./scripts/build_frontend.py --strict --debug

Exit codes:
    0 - Build completed (verification problems allowed in advisory mode)
    1 - Filesystem, bundler, configuration or strict verification failure
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from rich.console import Console

from build_events import (
    ErrorKind,
    EventLog,
    PipelineError,
    console_sink,
    report_failure,
)
from plugin_config import PluginConfig, default_project_root, load_config
from provision_plugin import prepare_plugin_tree
from verify_build import BuildReport, verify_build

Runner = Callable[..., Any]

PRODUCTION_MODE = "production"
DEVELOPMENT_MODE = "development"


def probe_minifier(config: PluginConfig, events: EventLog) -> bool:
    """Look for the optional minifier in node_modules, from the project root upward."""
    if not config.minifier:
        return False

    for directory in [config.project_root, *config.project_root.parents]:
        if (directory / "node_modules" / config.minifier).is_dir():
            events.success(f"{config.minifier} is installed.")
            return True

    events.warning(
        f"{config.minifier} is not installed. The bundler will fall back to esbuild "
        "minification or an unminified development build."
    )
    events.info(f"To use {config.minifier}, install it with: npm install {config.minifier} --save-dev")
    return False


def check_duplicate_plugin_folders(config: PluginConfig, events: EventLog) -> list[str]:
    """Warn about sibling folders that look like other copies of the plugin."""
    tokens = [t for t in config.plugin_slug.lower().split("-") if t]
    parent = config.plugin_dir.parent
    if not parent.is_dir():
        return []

    candidates = sorted(
        entry.name
        for entry in parent.iterdir()
        if entry.is_dir() and all(t in entry.name.lower() for t in tokens)
    )

    if len(candidates) > 1:
        events.warning(
            "Possible duplicate plugin directories detected: "
            + ", ".join(candidates)
            + ". This might cause conflicts when installing in WordPress."
        )
    return candidates


def clean_build_dir(config: PluginConfig, events: EventLog) -> list[Path]:
    """Delete non-marker files directly inside the build directory.

    Subdirectories are left alone; symlinks are removed like files.

    Returns:
        Paths that were deleted
    """
    build_dir = config.build_path
    deleted: list[Path] = []

    if not build_dir.is_dir():
        return deleted

    events.info("Cleaning build directory...")
    for entry in sorted(build_dir.iterdir()):
        if entry.name == config.marker_name or (entry.is_dir() and not entry.is_symlink()):
            continue
        try:
            entry.unlink()
        except OSError as e:
            raise PipelineError(ErrorKind.FILESYSTEM, f"Failed to delete: {entry}", [str(e)]) from e
        events.debug(f"Deleted: {entry}")
        deleted.append(entry)

    return deleted


def _run_bundler(
    command: Sequence[str], config: PluginConfig, events: EventLog, runner: Runner
) -> str | None:
    """Run one bundler invocation. Returns a failure description, or None on success."""
    events.debug(f"Executing command: {' '.join(command)}")
    try:
        # stdio is inherited so bundler output streams through live
        result = runner(list(command), cwd=str(config.project_root), check=False)
    except FileNotFoundError:
        return f"{command[0]} not found on PATH"
    except OSError as e:
        return f"could not start {command[0]}: {e}"

    if result.returncode != 0:
        return f"exit status {result.returncode}"
    return None


def invoke_bundler(
    config: PluginConfig, events: EventLog, runner: Runner | None = None
) -> str:
    """Run the bundler, retrying once in development mode on failure.

    Returns:
        The mode that succeeded ("production" or "development")

    Raises:
        PipelineError: BUILD kind if the fallback invocation fails too
    """
    if runner is None:
        runner = subprocess.run

    events.info("Running bundler build command...")
    failure = _run_bundler(config.bundler_command, config, events, runner)
    if failure is None:
        events.success("Build process completed successfully!")
        return PRODUCTION_MODE

    events.error(f"Build command failed: {failure}")
    events.info("Trying to build without minification...")

    fallback_failure = _run_bundler(config.fallback_command, config, events, runner)
    if fallback_failure is None:
        events.success("Build process completed with development mode (unminified).")
        return DEVELOPMENT_MODE

    raise PipelineError(
        ErrorKind.BUILD,
        "Build process failed",
        [
            f"{' '.join(config.bundler_command)}: {failure}",
            f"{' '.join(config.fallback_command)}: {fallback_failure}",
        ],
    )


def run_build(
    config: PluginConfig,
    events: EventLog,
    runner: Runner | None = None,
    *,
    strict: bool | None = None,
) -> BuildReport:
    """Provision, seed, clean, bundle and verify. Returns the verification report."""
    events.set_step("build")
    events.info(f"Building {config.display_name} React component for WordPress...")
    events.debug(f"Plugin directory: {config.plugin_dir}")
    events.debug(f"Build directory: {config.build_path}")
    events.debug(f"Assets directory: {config.assets_path}")

    probe_minifier(config, events)
    check_duplicate_plugin_folders(config, events)

    prepare_plugin_tree(config, events)
    clean_build_dir(config, events)
    invoke_bundler(config, events, runner)

    events.set_step("verify")
    events.info("Verifying build output...")
    return verify_build(config, events, strict=strict)


def main() -> int:
    """Build the plugin front end."""
    parser = argparse.ArgumentParser(
        description="Build the React front end of the WordPress plugin",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--root", type=Path, default=default_project_root(), help="Project root")
    parser.add_argument("--config", type=Path, help="Path to wp-plugin.yaml")
    parser.add_argument(
        "--strict", action="store_true", help="Fail when the build output is incomplete"
    )
    parser.add_argument("--debug", action="store_true", help="Show debug events")
    args = parser.parse_args()

    console = Console()
    events = EventLog(sinks=[console_sink(console, debug=args.debug)])

    try:
        config = load_config(args.root, args.config)
        report = run_build(config, events, strict=args.strict or None)
    except PipelineError as e:
        report_failure(console, e)
        return 1

    if not report.ok:
        console.print(
            f"\n[yellow]Build finished with {len(report.problems)} verification problem(s) "
            "(advisory mode, not failing)[/yellow]"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
