"""
Shared configuration for the WordPress plugin packaging scripts.

Every step receives the same ``PluginConfig`` instead of re-declaring the plugin
name and directory layout. Defaults describe the Names Fusion plugin; a
``wp-plugin.yaml`` file at the project root may override any of them:

    plugin_slug: names-fusion
    display_name: Names Fusion
    compression_level: 9
    strict_build_verification: false
    bundler_command: [npx, vite, build, --config, vite.config.wordpress.ts]

The file is validated against ``CONFIG_SCHEMA`` (JSON Schema Draft 7) before use.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from build_events import ErrorKind, PipelineError

CONFIG_FILENAME = "wp-plugin.yaml"
PROJECT_MARKERS = (CONFIG_FILENAME, "vite.config.wordpress.ts")
MARKER_CONTENT = "<?php // Silence is golden."

_STRING_LIST = {"type": "array", "items": {"type": "string", "minLength": 1}}
_RELATIVE_DIR = {"type": "string", "minLength": 1, "pattern": "^[^/\\\\]"}

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "plugin_slug": {
            "type": "string",
            "pattern": "^[a-z0-9]+(-[a-z0-9]+)*$",
            "description": "WordPress plugin identifier (kebab-case)",
        },
        "display_name": {"type": "string", "minLength": 1},
        "build_dir": _RELATIVE_DIR,
        "assets_dir": _RELATIVE_DIR,
        "css_dir": _RELATIVE_DIR,
        "js_dir": _RELATIVE_DIR,
        "marker_name": {"type": "string", "minLength": 1},
        "marker_content": {"type": "string"},
        "seed_assets": {"type": "object", "additionalProperties": {"type": "string"}},
        "handler_prefix": {"type": "string", "pattern": "^[A-Za-z_][A-Za-z0-9_]*$"},
        "bundler_command": {**_STRING_LIST, "minItems": 1},
        "fallback_args": _STRING_LIST,
        "minifier": {"type": ["string", "null"]},
        "archive_name": {"type": "string", "pattern": "\\.zip$"},
        "compression_level": {"type": "integer", "minimum": 0, "maximum": 9},
        "strict_build_verification": {"type": "boolean"},
        "strict_structure_validation": {"type": "boolean"},
        "shortcodes": _STRING_LIST,
    },
}


@dataclass(frozen=True)
class PluginConfig:
    """Layout and behaviour of one plugin packaging run."""

    project_root: Path
    plugin_slug: str = "names-fusion"
    display_name: str = "Names Fusion"
    build_dir: str = "react-build"
    assets_dir: str = "react-build/assets"
    css_dir: str = "css"
    js_dir: str = "js"
    marker_name: str = "index.php"
    marker_content: str = MARKER_CONTENT
    seed_assets: Mapping[str, str] | None = None
    handler_prefix: str | None = None
    bundler_command: tuple[str, ...] = (
        "npx",
        "vite",
        "build",
        "--config",
        "vite.config.wordpress.ts",
    )
    fallback_args: tuple[str, ...] = ("--mode=development",)
    minifier: str | None = "terser"
    archive_name: str | None = None
    compression_level: int = 9
    strict_build_verification: bool = False
    strict_structure_validation: bool = True
    shortcodes: tuple[str, ...] = ("names_fusion", "names_fusion_react")

    def __post_init__(self) -> None:
        errors = self.path_errors()
        if errors:
            raise PipelineError(
                ErrorKind.CONFIG, "Configured paths must stay inside the project", errors
            )

    def path_errors(self) -> list[str]:
        """Check every configured relative path against its base directory."""
        _, error = validate_plugin_path(self.project_root, self.plugin_slug, "plugin_slug")
        if error:
            return [error]

        errors: list[str] = []
        for name in ("build_dir", "assets_dir", "css_dir", "js_dir"):
            _, error = validate_plugin_path(self.plugin_dir, getattr(self, name), name)
            if error:
                errors.append(error)

        for rel in self.seed_assets or {}:
            _, error = validate_plugin_path(self.plugin_dir, rel, f"seed_assets -> {rel}")
            if error:
                errors.append(error)

        if self.archive_name:
            archive, error = validate_plugin_path(
                self.project_root, self.archive_name, "archive_name"
            )
            if error:
                errors.append(error)
            elif archive is not None and archive.is_relative_to(self.plugin_dir.resolve()):
                errors.append(
                    f"archive_name: Archive must be written outside the plugin folder: "
                    f"{self.archive_name}"
                )

        return errors

    @property
    def plugin_dir(self) -> Path:
        return self.project_root / self.plugin_slug

    @property
    def build_path(self) -> Path:
        return self.plugin_dir / self.build_dir

    @property
    def assets_path(self) -> Path:
        return self.plugin_dir / self.assets_dir

    @property
    def css_path(self) -> Path:
        return self.plugin_dir / self.css_dir

    @property
    def js_path(self) -> Path:
        return self.plugin_dir / self.js_dir

    @property
    def entry_file(self) -> Path:
        return self.plugin_dir / f"{self.plugin_slug}.php"

    @property
    def archive_path(self) -> Path:
        return self.project_root / (self.archive_name or f"{self.plugin_slug}-plugin.zip")

    @property
    def required_directories(self) -> list[Path]:
        """Directories that must exist (each with a marker), in creation order."""
        return [self.plugin_dir, self.build_path, self.assets_path, self.css_path, self.js_path]

    @property
    def seed_files(self) -> dict[Path, str]:
        """Absolute seed asset paths mapped to their placeholder content."""
        assets = self.seed_assets
        if assets is None:
            assets = {
                f"{self.css_dir}/{self.plugin_slug}.css": f"/* {self.display_name} Styles */",
                f"{self.js_dir}/{self.plugin_slug}.js": f"/* {self.display_name} jQuery Script */",
            }
        return {self.plugin_dir / rel: content for rel, content in assets.items()}

    @property
    def handler_pattern_prefix(self) -> str:
        """Prefix every server-side handler function name must carry."""
        if self.handler_prefix:
            return self.handler_prefix
        return self.plugin_slug.replace("-", "_") + "_"

    @property
    def fallback_command(self) -> list[str]:
        return [*self.bundler_command, *self.fallback_args]


def validate_plugin_path(
    base_dir: Path, relative_path: str, context: str
) -> tuple[Path | None, str | None]:
    """Validate a configured relative path stays strictly below ``base_dir``.

    Args:
        base_dir: Base directory (plugin folder or project root)
        relative_path: Relative path string from config
        context: Context for error messages

    Returns:
        Tuple of (resolved_path, error_message). If error, path is None.
    """
    try:
        base_resolved = base_dir.resolve()
        # normpath collapses ".." without touching the filesystem
        normalized = Path(os.path.normpath(os.path.join(str(base_resolved), relative_path)))
    except OSError as e:
        return None, f"{context}: Invalid path: {e}"

    if normalized == base_resolved:
        return None, f"{context}: Path must not be the base directory itself: {relative_path}"
    try:
        normalized.relative_to(base_resolved)
    except ValueError:
        return None, f"{context}: Path escapes base directory: {relative_path}"
    return normalized, None


def find_project_root(start: Path) -> Path | None:
    """Nearest directory at or above ``start`` holding a project marker file."""
    for directory in [start, *start.parents]:
        if any((directory / name).is_file() for name in PROJECT_MARKERS):
            return directory
    return None


def default_project_root() -> Path:
    """Project root for the CLI: searched upward from the working directory."""
    cwd = Path.cwd()
    return find_project_root(cwd) or cwd


def validate_config_data(data: dict[str, Any], context: str) -> list[str]:
    """Validate raw config data against ``CONFIG_SCHEMA``.

    Returns:
        List of formatted error messages with field paths
    """
    errors: list[str] = []

    try:
        validator = Draft7Validator(CONFIG_SCHEMA)
    except SchemaError as e:
        errors.append(f"{context}: INTERNAL ERROR - Invalid schema definition: {e}")
        return errors

    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        errors.append(f"{context}: {path}: {error.message}")

    return errors


def load_config_file(config_path: Path) -> dict[str, Any]:
    """Read and validate a YAML config file, raising CONFIG errors."""
    try:
        text = config_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise PipelineError(
            ErrorKind.CONFIG,
            f"{config_path.name} is not valid UTF-8",
            [f"Error at byte {e.start}: {e.reason}"],
        ) from e
    except OSError as e:
        raise PipelineError(ErrorKind.CONFIG, f"Cannot read {config_path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PipelineError(
            ErrorKind.CONFIG, f"Invalid YAML in {config_path.name}", [str(e)]
        ) from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise PipelineError(
            ErrorKind.CONFIG,
            f"{config_path.name} must be a YAML mapping (key-value pairs), "
            f"got {type(data).__name__}",
        )

    errors = validate_config_data(data, config_path.name)
    if errors:
        raise PipelineError(ErrorKind.CONFIG, f"Invalid configuration in {config_path}", errors)

    return data


def load_config(project_root: Path | str, config_path: Path | str | None = None) -> PluginConfig:
    """Build a ``PluginConfig`` for ``project_root``.

    Args:
        project_root: Directory that holds the plugin root and bundler config
        config_path: Explicit YAML file. When omitted, ``wp-plugin.yaml`` under
            the project root is used if present, otherwise defaults apply.

    Raises:
        PipelineError: CONFIG kind if an explicit file is missing or any file is invalid
    """
    root = Path(project_root).resolve()

    if config_path is None:
        candidate = root / CONFIG_FILENAME
        if not candidate.exists():
            return PluginConfig(project_root=root)
        path = candidate
    else:
        path = Path(config_path)
        if not path.is_absolute():
            path = root / path
        if not path.exists():
            raise PipelineError(ErrorKind.CONFIG, f"Config file not found: {path}")

    data = load_config_file(path)

    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, list):
            value = tuple(value)
        overrides[key] = value

    return PluginConfig(project_root=root, **overrides)
