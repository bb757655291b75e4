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
Verify the front-end build output of the WordPress plugin.

Checks that the build directory and its assets sub-path exist and that the
bundler produced at least one script (.js) and one stylesheet (.css).

Verification is advisory by default: problems are reported but do not fail the
run. Use --strict (or ``strict_build_verification: true`` in wp-plugin.yaml) to
turn them into a hard failure.

Usage:
    ./scripts/verify_build.py              # Advisory mode
    ./scripts/verify_build.py --strict     # Problems fail with exit 1
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from build_events import (
    ErrorKind,
    EventLog,
    PipelineError,
    console_sink,
    report_failure,
)
from plugin_config import PluginConfig, default_project_root, load_config

SCRIPT_SUFFIX = ".js"
STYLESHEET_SUFFIX = ".css"


@dataclass
class BuildReport:
    """What the build directory contained after the bundler ran."""

    build_dir: Path
    assets_dir: Path
    build_files: list[str] = field(default_factory=list)
    scripts: list[str] = field(default_factory=list)
    stylesheets: list[str] = field(default_factory=list)
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


def classify_assets(names: list[str]) -> tuple[list[str], list[str]]:
    """Partition file names into (scripts, stylesheets) by suffix."""
    scripts = sorted(n for n in names if n.endswith(SCRIPT_SUFFIX))
    stylesheets = sorted(n for n in names if n.endswith(STYLESHEET_SUFFIX))
    return scripts, stylesheets


def verify_build(
    config: PluginConfig, events: EventLog, *, strict: bool | None = None
) -> BuildReport:
    """Inspect the build output and report missing asset categories.

    Args:
        config: Plugin configuration
        events: Event stream for progress and problems
        strict: Raise on problems. Defaults to ``config.strict_build_verification``.

    Raises:
        PipelineError: VALIDATION kind, only in strict mode
    """
    if strict is None:
        strict = config.strict_build_verification

    report = BuildReport(build_dir=config.build_path, assets_dir=config.assets_path)

    if not report.build_dir.is_dir():
        report.problems.append(f"Build directory does not exist: {report.build_dir}")
    else:
        events.success(f"Build directory exists: {report.build_dir}")
        report.build_files = sorted(p.name for p in report.build_dir.iterdir())
        events.info(f"Files in build directory: {', '.join(report.build_files) or '(none)'}")

        if not report.assets_dir.is_dir():
            report.problems.append(f"Assets directory does not exist: {report.assets_dir}")
        else:
            events.success(f"Assets directory exists: {report.assets_dir}")
            asset_files = [p.name for p in report.assets_dir.iterdir() if p.is_file()]
            report.scripts, report.stylesheets = classify_assets(asset_files)

            if report.scripts:
                events.success(f"JavaScript assets found: {', '.join(report.scripts)}")
            else:
                report.problems.append(f"No JavaScript assets found in: {report.assets_dir}")

            if report.stylesheets:
                events.success(f"CSS assets found: {', '.join(report.stylesheets)}")
            else:
                report.problems.append(f"No CSS assets found in: {report.assets_dir}")

    for problem in report.problems:
        events.error(problem)

    if report.problems and strict:
        raise PipelineError(ErrorKind.VALIDATION, "Build output verification failed", report.problems)

    return report


def main() -> int:
    """Verify the build output of the plugin in the project root."""
    parser = argparse.ArgumentParser(
        description="Verify the React build output of the WordPress plugin",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - Verification passed (or problems found in advisory mode)
  1 - Problems found in strict mode, or configuration error
        """,
    )
    parser.add_argument("--root", type=Path, default=default_project_root(), help="Project root")
    parser.add_argument("--config", type=Path, help="Path to wp-plugin.yaml")
    parser.add_argument("--strict", action="store_true", help="Treat missing assets as errors")
    parser.add_argument("--debug", action="store_true", help="Show debug events")
    args = parser.parse_args()

    console = Console()
    events = EventLog(sinks=[console_sink(console, debug=args.debug)])

    try:
        config = load_config(args.root, args.config)
        console.print("\n[bold cyan]Verifying build output...[/bold cyan]\n")
        report = verify_build(config, events, strict=args.strict or None)
    except PipelineError as e:
        report_failure(console, e)
        return 1

    if report.ok:
        console.print("\n[bold green]✅ Build output looks complete.[/bold green]")
    else:
        console.print(
            f"\n[yellow]{len(report.problems)} problem(s) found (advisory mode, not failing)[/yellow]"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
