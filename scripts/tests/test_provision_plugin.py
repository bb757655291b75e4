"""Tests for provision_plugin.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from build_events import ErrorKind, EventLog, PipelineError
from plugin_config import MARKER_CONTENT, PluginConfig
from provision_plugin import (
    prepare_plugin_tree,
    provision_directories,
    seed_asset,
    seed_assets,
)


def _snapshot(root: Path) -> dict[str, str | None]:
    """Map every path under root to its text (None for directories)."""
    return {
        str(p.relative_to(root)): None if p.is_dir() else p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
    }


class TestProvisionDirectories:
    """Tests for provision_directories function."""

    def test_creates_every_directory_with_marker(self, tmp_path: Path, events: EventLog) -> None:
        """Should create all required directories, each holding index.php."""
        config = PluginConfig(project_root=tmp_path)

        created = provision_directories(config, events)

        assert created == config.required_directories
        for directory in config.required_directories:
            assert directory.is_dir()
            marker = directory / "index.php"
            assert marker.read_text(encoding="utf-8") == MARKER_CONTENT

    def test_idempotent(self, tmp_path: Path, events: EventLog) -> None:
        """Should leave the tree unchanged when run a second time."""
        config = PluginConfig(project_root=tmp_path)
        provision_directories(config, events)
        before = _snapshot(tmp_path)

        created = provision_directories(config, events)

        assert created == []
        assert _snapshot(tmp_path) == before

    def test_adds_marker_to_existing_directory(self, tmp_path: Path, events: EventLog) -> None:
        """Should add a missing marker even when the directory already exists."""
        config = PluginConfig(project_root=tmp_path)
        config.css_path.mkdir(parents=True)

        created = provision_directories(config, events)

        assert config.css_path not in created
        assert (config.css_path / "index.php").exists()

    def test_keeps_existing_marker_content(self, tmp_path: Path, events: EventLog) -> None:
        """Should never overwrite an existing marker."""
        config = PluginConfig(project_root=tmp_path)
        config.plugin_dir.mkdir()
        (config.plugin_dir / "index.php").write_text("<?php // custom", encoding="utf-8")

        provision_directories(config, events)

        assert (config.plugin_dir / "index.php").read_text(encoding="utf-8") == "<?php // custom"

    def test_create_failure_is_fatal(self, tmp_path: Path, events: EventLog) -> None:
        """Should raise a FILESYSTEM error when a directory cannot be created."""
        config = PluginConfig(project_root=tmp_path)
        config.plugin_dir.write_text("not a directory", encoding="utf-8")

        with pytest.raises(PipelineError) as exc_info:
            provision_directories(config, events)

        assert exc_info.value.kind is ErrorKind.FILESYSTEM


class TestSeedAsset:
    """Tests for seed_asset and seed_assets functions."""

    def test_writes_missing_file(self, tmp_path: Path, events: EventLog) -> None:
        """Should write the default content when the file is absent."""
        target = tmp_path / "css" / "names-fusion.css"

        assert seed_asset(target, "/* Names Fusion Styles */", events) is True
        assert target.read_text(encoding="utf-8") == "/* Names Fusion Styles */"

    def test_never_clobbers_user_edits(self, tmp_path: Path, events: EventLog) -> None:
        """Should leave an existing file untouched."""
        target = tmp_path / "names-fusion.js"
        target.write_text("console.log('edited');", encoding="utf-8")

        assert seed_asset(target, "/* placeholder */", events) is False
        assert target.read_text(encoding="utf-8") == "console.log('edited');"

    def test_seed_assets_twice(self, tmp_path: Path, events: EventLog) -> None:
        """Should write both assets once and nothing on the second run."""
        config = PluginConfig(project_root=tmp_path)
        provision_directories(config, events)

        first = seed_assets(config, events)
        second = seed_assets(config, events)

        assert sorted(first) == sorted(config.seed_files)
        assert second == []

    def test_custom_seed_assets(self, tmp_path: Path, events: EventLog) -> None:
        """Should honour a configured seed asset mapping."""
        config = PluginConfig(project_root=tmp_path, seed_assets={"css/extra.css": "/* x */"})

        seed_assets(config, events)

        assert (config.plugin_dir / "css" / "extra.css").read_text(encoding="utf-8") == "/* x */"


class TestPreparePluginTree:
    """Tests for prepare_plugin_tree function."""

    def test_full_tree(self, tmp_path: Path, events: EventLog) -> None:
        """Should produce directories, markers and seed assets."""
        config = PluginConfig(project_root=tmp_path)

        prepare_plugin_tree(config, events)

        assert (config.css_path / "names-fusion.css").exists()
        assert (config.js_path / "names-fusion.js").exists()
        assert all((d / "index.php").exists() for d in config.required_directories)
