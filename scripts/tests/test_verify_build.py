"""Tests for verify_build.py."""

from __future__ import annotations

import dataclasses

import pytest

from build_events import ErrorKind, EventLevel, EventLog, PipelineError
from plugin_config import PluginConfig
from verify_build import classify_assets, verify_build


def _write_assets(config: PluginConfig, *names: str) -> None:
    config.assets_path.mkdir(parents=True, exist_ok=True)
    for name in names:
        (config.assets_path / name).write_text("", encoding="utf-8")


class TestClassifyAssets:
    """Tests for classify_assets function."""

    def test_partitions_by_suffix(self) -> None:
        """Should split scripts and stylesheets, ignoring source maps."""
        scripts, stylesheets = classify_assets(
            ["index.abc123.js", "index.abc123.js.map", "index.abc123.css", "logo.svg"]
        )

        assert scripts == ["index.abc123.js"]
        assert stylesheets == ["index.abc123.css"]


class TestVerifyBuild:
    """Tests for verify_build function."""

    def test_script_and_stylesheet_found(self, config: PluginConfig, events: EventLog) -> None:
        """Should classify one file into each category and log success for both."""
        _write_assets(config, "index.abc123.js", "index.abc123.css")

        report = verify_build(config, events)

        assert report.ok
        assert report.scripts == ["index.abc123.js"]
        assert report.stylesheets == ["index.abc123.css"]
        successes = events.messages(EventLevel.SUCCESS)
        assert any("JavaScript assets found: index.abc123.js" in m for m in successes)
        assert any("CSS assets found: index.abc123.css" in m for m in successes)
        assert not events.has_errors

    def test_missing_stylesheet_is_advisory(self, config: PluginConfig, events: EventLog) -> None:
        """Should log the missing stylesheet without raising."""
        _write_assets(config, "index.abc123.js")

        report = verify_build(config, events)

        assert not report.ok
        assert report.problems == [f"No CSS assets found in: {config.assets_path}"]
        assert events.messages(EventLevel.ERROR) == report.problems

    def test_missing_stylesheet_strict(self, config: PluginConfig, events: EventLog) -> None:
        """Should raise a VALIDATION error in strict mode."""
        _write_assets(config, "index.abc123.js")

        with pytest.raises(PipelineError) as exc_info:
            verify_build(config, events, strict=True)

        assert exc_info.value.kind is ErrorKind.VALIDATION

    def test_strict_from_config(self, config: PluginConfig, events: EventLog) -> None:
        """Should read strictness from the configuration when not given."""
        strict_config = dataclasses.replace(config, strict_build_verification=True)
        _write_assets(strict_config, "index.abc123.css")

        with pytest.raises(PipelineError, match="No JavaScript assets"):
            verify_build(strict_config, events)

    def test_missing_build_dir(self, config: PluginConfig, events: EventLog) -> None:
        """Should report a missing build directory and stop there."""
        report = verify_build(config, events)

        assert report.problems == [f"Build directory does not exist: {config.build_path}"]
        assert report.scripts == []

    def test_missing_assets_dir(self, config: PluginConfig, events: EventLog) -> None:
        """Should report a missing assets sub-path."""
        config.build_path.mkdir(parents=True)
        (config.build_path / "index.php").write_text("", encoding="utf-8")

        report = verify_build(config, events)

        assert report.build_files == ["index.php"]
        assert report.problems == [f"Assets directory does not exist: {config.assets_path}"]

    def test_empty_assets_dir(self, config: PluginConfig, events: EventLog) -> None:
        """Should report both categories when the assets directory is empty."""
        config.assets_path.mkdir(parents=True)

        report = verify_build(config, events)

        assert len(report.problems) == 2
