"""Tests for configuration loading."""

import os
import tempfile
from pathlib import Path

from fenceplus.config import load_config
from fenceplus.core.settings import DEFAULT_HIGHLIGHT_COLOR
from fenceplus.runtime import build_runtime


def test_load_config_defaults():
    """Test loading config with defaults when no file exists."""
    with tempfile.TemporaryDirectory() as tmpdir:
        orig_cwd = os.getcwd()
        try:
            os.chdir(tmpdir)
            config = load_config()
        finally:
            os.chdir(orig_cwd)

    assert config.vault.root == Path(".")
    assert config.vault.settings_file == Path(".fenceplus/settings.yaml")
    assert config.codeblock.highlight_color == DEFAULT_HIGHLIGHT_COLOR
    assert config.codeblock.show_line_number is True
    assert config.preview.reconcile_delay_ms == 100
    assert config.logging.level == "WARNING"


def test_load_config_from_file():
    """Test loading config from a file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "fenceplus.toml"
        config_path.write_text("""
[vault]
root = "my-vault"

[settings]
file = "plugin-data.yaml"

[codeblock]
excludeLangs = ["dataview", "mermaid"]
showLineNumber = false
highLightColor = "#ff000020"

[preview]
reconcile_delay_ms = 250
line_height_px = 22.5
chars_per_row = 100

[logging]
level = "debug"
""")

        config = load_config(config_path=config_path)

        assert config.vault.root == Path("my-vault")
        assert config.vault.settings_file == Path("plugin-data.yaml")
        assert config.codeblock.exclude_langs == ["dataview", "mermaid"]
        assert config.codeblock.show_line_number is False
        assert config.codeblock.highlight_color == "#ff000020"
        assert config.preview.reconcile_delay_ms == 250
        assert config.preview.line_height_px == 22.5
        assert config.preview.chars_per_row == 100
        assert config.logging.level == "DEBUG"


def test_load_config_search_cwd():
    """Test config search in current working directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        orig_cwd = os.getcwd()
        try:
            os.chdir(tmpdir)
            config_path = Path(tmpdir) / "fenceplus.toml"
            config_path.write_text("""
[preview]
chars_per_row = 60
""")

            config = load_config()
            assert config.preview.chars_per_row == 60
        finally:
            os.chdir(orig_cwd)


def test_load_config_search_vault():
    """Test config search in vault directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        vault_path = Path(tmpdir) / "vault"
        vault_path.mkdir()
        config_path = vault_path / "fenceplus.toml"
        config_path.write_text("""
[codeblock]
showDividingLine = true
""")

        config = load_config(vault_path=vault_path)
        assert config.codeblock.show_dividing_line is True
        assert config.vault.root == vault_path
        assert config.vault.settings_file == vault_path / ".fenceplus" / "settings.yaml"


def test_persisted_settings_override_config():
    """Test plugin data on disk wins over the [codeblock] table."""
    with tempfile.TemporaryDirectory() as tmpdir:
        vault_path = Path(tmpdir)
        (vault_path / "fenceplus.toml").write_text("""
[codeblock]
showLineNumber = false
showDividingLine = true
""")
        data_dir = vault_path / ".fenceplus"
        data_dir.mkdir()
        (data_dir / "settings.yaml").write_text("showLineNumber: true\n")

        rt = build_runtime(vault_path=vault_path, config_path=vault_path / "fenceplus.toml")

        assert rt.settings.show_line_number is True
        assert rt.settings.show_dividing_line is True
