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
Package the WordPress plugin into an installable zip.

Pipeline (each step is a hard gate unless noted):
1. Build the React front end (see build_frontend.py); output verification is
   advisory unless --strict
2. Validate the PHP entry file for duplicate handler declarations
3. Re-create directories, markers and seed assets
4. Zip the whole plugin folder at maximum compression into
   <plugin-slug>-plugin.zip

Important: WordPress expects the zip root to contain a single folder whose name
matches the plugin slug (e.g. names-fusion/...), not a flat list of files.

The archive is written to <archive>.partial and renamed over the final path
only once it is complete, so a failed run keeps the previous archive.

Usage:
    ./scripts/package_plugin.py
    ./scripts/package_plugin.py --strict --debug
"""

from __future__ import annotations

import argparse
import os
import posixpath
import sys
import zipfile
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from build_events import (
    ErrorKind,
    EventLevel,
    EventLog,
    PipelineError,
    console_sink,
    report_failure,
)
from build_frontend import Runner, run_build
from plugin_config import PluginConfig, default_project_root, load_config
from provision_plugin import prepare_plugin_tree
from validate_structure import StructureReport, validate_structure
from verify_build import BuildReport

PARTIAL_SUFFIX = ".partial"


@dataclass
class PackageResult:
    archive_path: Path
    size: int
    build: BuildReport
    structure: StructureReport


def _raise_walk_error(error: OSError) -> None:
    raise error


def _iter_tree(root: Path) -> Iterator[Path]:
    """Yield every directory and file below ``root`` in sorted order.

    Unreadable directories raise instead of being skipped.
    """
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames.sort()
        current = Path(dirpath)
        for name in dirnames:
            yield current / name
        for name in sorted(filenames):
            yield current / name


def write_archive(source_dir: Path, zip_path: Path, top_level: str, compression_level: int) -> int:
    """Zip ``source_dir`` into ``zip_path`` under the ``top_level`` folder.

    Returns:
        Number of entries written (directories included)
    """
    count = 0
    with zipfile.ZipFile(
        zip_path, mode="w", compression=zipfile.ZIP_DEFLATED, compresslevel=compression_level
    ) as zf:
        zf.write(source_dir, arcname=top_level)
        for path in _iter_tree(source_dir):
            rel_posix = "/".join(path.relative_to(source_dir).parts)
            arcname = posixpath.join(top_level, rel_posix)
            zf.write(path, arcname=arcname)
            count += 1
    return count


def check_archive(zip_path: Path, expected_entry: str) -> None:
    """Make sure the archive opens and contains the plugin entry file."""
    with zipfile.ZipFile(zip_path, mode="r") as zf:
        names = set(zf.namelist())
        bad = zf.testzip()
    if bad is not None:
        raise PipelineError(ErrorKind.ARCHIVE, f"Corrupt entry in archive: {bad}")
    if expected_entry not in names:
        raise PipelineError(
            ErrorKind.ARCHIVE,
            f"Zip validation failed. Expected entry missing: {expected_entry}",
            [f"First entries: {sorted(names)[:20]}"],
        )


def create_archive(config: PluginConfig, events: EventLog) -> tuple[Path, int]:
    """Write the plugin zip atomically. Returns (archive_path, size_in_bytes)."""
    events.set_step("archive")
    events.info("Creating plugin zip file...")

    final_path = config.archive_path
    partial_path = final_path.with_name(final_path.name + PARTIAL_SUFFIX)
    expected_entry = f"{config.plugin_slug}/{config.entry_file.name}"

    try:
        count = write_archive(
            config.plugin_dir, partial_path, config.plugin_slug, config.compression_level
        )
        check_archive(partial_path, expected_entry)
        if final_path.exists():
            events.info(f"Replacing existing zip file: {final_path}")
        os.replace(partial_path, final_path)
    except PipelineError:
        partial_path.unlink(missing_ok=True)
        raise
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        partial_path.unlink(missing_ok=True)
        raise PipelineError(
            ErrorKind.ARCHIVE, f"Failed to write archive: {final_path}", [str(e)]
        ) from e

    size = final_path.stat().st_size
    events.debug(f"Archived {count} entries under {config.plugin_slug}/")
    events.success(f"Plugin zip created successfully! ({size} bytes)")
    return final_path, size


def package_plugin(
    config: PluginConfig,
    events: EventLog,
    runner: Runner | None = None,
    *,
    strict_build: bool | None = None,
) -> PackageResult:
    """Run the full build, validate and archive pipeline.

    Raises:
        PipelineError: from whichever step failed; nothing is archived in that case
    """
    events.info(f"Preparing {config.display_name} WordPress plugin with React...")

    build = run_build(config, events, runner, strict=strict_build)
    structure = validate_structure(config, events)

    events.set_step("provision")
    prepare_plugin_tree(config, events)

    archive_path, size = create_archive(config, events)
    return PackageResult(archive_path=archive_path, size=size, build=build, structure=structure)


def print_summary(
    console: Console, config: PluginConfig, result: PackageResult, events: EventLog
) -> None:
    """Print the step table and the installation instructions."""

    def status_icon(ok: bool) -> str:
        return "[green]✓[/green]" if ok else "[yellow]⚠[/yellow]"

    table = Table(title="Packaging Summary", show_header=True, header_style="bold cyan")
    table.add_column("Step", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Details")
    table.add_row(
        "Build output",
        status_icon(result.build.ok),
        f"{len(result.build.scripts)} script(s), {len(result.build.stylesheets)} stylesheet(s)",
    )
    table.add_row(
        "Structure",
        status_icon(result.structure.ok),
        f"{len(result.structure.distinct)} handler(s)",
    )
    table.add_row("Archive", status_icon(True), f"{result.size} bytes")
    console.print()
    console.print(table)

    warnings = events.by_level(EventLevel.WARNING)
    if warnings:
        console.print(f"\n[bold yellow]Warnings ({len(warnings)}):[/bold yellow]")
        for event in warnings:
            console.print(f"  [yellow]• {escape(event.message)}[/yellow]")

    shortcodes = " or ".join(escape(f"[{code}]") for code in config.shortcodes)
    lines = [
        f"[bold green]✅ Plugin zip created successfully! ({result.size} bytes)[/bold green]",
        f"📦 File: {result.archive_path.name}",
        "",
        "[bold]Installation instructions:[/bold]",
        "1. Go to WordPress Admin > Plugins > Add New > Upload Plugin",
        f"2. Upload the {result.archive_path.name} file",
        "3. Activate the plugin",
    ]
    if config.shortcodes:
        lines.append(f"4. Add the shortcode {shortcodes} to your page")
    lines += [
        "",
        "[bold]Troubleshooting:[/bold]",
        "- If you encounter any errors, check the WordPress and server error logs",
        "- Deactivate and delete any previous version before installing a new one",
    ]
    console.print(Panel.fit("\n".join(lines), border_style="green"))


def main() -> int:
    """Build, validate and package the plugin."""
    parser = argparse.ArgumentParser(
        description="Build and package the WordPress plugin into an installable zip",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - Plugin zip created
  1 - Any step failed (the previous zip, if any, is left in place)
        """,
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
        result = package_plugin(config, events, strict_build=args.strict or None)
    except PipelineError as e:
        report_failure(console, e)
        return 1

    print_summary(console, config, result, events)
    return 0


if __name__ == "__main__":
    sys.exit(main())
