"""Pytest configuration for the plugin packaging scripts."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add scripts directory to Python path for imports
SCRIPTS_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(SCRIPTS_DIR))

from build_events import EventLog  # noqa: E402
from plugin_config import PluginConfig  # noqa: E402

VALID_ENTRY_PHP = """<?php
/**
 * Plugin Name: Names Fusion
 * Version: 1.0.0
 */

if ( ! defined( 'ABSPATH' ) ) {
    exit;
}

function names_fusion_shortcode( $atts ) {
    return '<div id="names-fusion"></div>';
}

function names_fusion_react_shortcode( $atts ) {
    return '<div id="names-fusion-react"></div>';
}

add_shortcode( 'names_fusion', 'names_fusion_shortcode' );
add_shortcode( 'names_fusion_react', 'names_fusion_react_shortcode' );
"""


class FakeBundler:
    """Stand-in for ``subprocess.run`` that mimics a bundler writing hashed assets.

    ``returncodes`` is consumed one per call; when exhausted the last code repeats.
    """

    def __init__(
        self,
        config: PluginConfig,
        returncodes: list[int] | None = None,
        outputs: tuple[str, ...] = ("index.abc123.js", "index.abc123.css"),
    ) -> None:
        self.config = config
        self.returncodes = list(returncodes or [0])
        self.outputs = outputs
        self.calls: list[list[str]] = []
        self.kwargs: list[dict[str, object]] = []

    def __call__(self, cmd: list[str], **kwargs: object) -> MagicMock:
        self.calls.append(cmd)
        self.kwargs.append(kwargs)
        code = self.returncodes.pop(0) if len(self.returncodes) > 1 else self.returncodes[0]
        if code == 0:
            self.config.assets_path.mkdir(parents=True, exist_ok=True)
            for name in self.outputs:
                (self.config.assets_path / name).write_text(f"/* {name} */", encoding="utf-8")
        return MagicMock(returncode=code, stdout=None, stderr=None)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Project root with a plugin folder holding a valid PHP entry file."""
    plugin_dir = tmp_path / "names-fusion"
    plugin_dir.mkdir()
    (plugin_dir / "names-fusion.php").write_text(VALID_ENTRY_PHP, encoding="utf-8")
    return tmp_path


@pytest.fixture
def config(project_root: Path) -> PluginConfig:
    return PluginConfig(project_root=project_root)


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def fake_bundler(config: PluginConfig) -> FakeBundler:
    return FakeBundler(config)
