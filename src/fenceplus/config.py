"""Configuration loader for fenceplus.toml."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .core.settings import Settings


@dataclass
class VaultConfig:
    """Where notes live and where plugin data is persisted."""
    root: Path
    settings_file: Path


@dataclass
class PreviewConfig:
    """Reading-view measurement configuration."""
    reconcile_delay_ms: int = 100
    line_height_px: float = 20.0
    chars_per_row: int = 80


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class FenceplusConfig:
    """Complete fenceplus configuration."""
    vault: VaultConfig
    codeblock: Settings = field(default_factory=Settings)
    preview: PreviewConfig = field(default_factory=PreviewConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Path | None = None, vault_path: Path | None = None) -> FenceplusConfig:
    """
    Load configuration from fenceplus.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/fenceplus.toml
    3. vault_path/fenceplus.toml

    Args:
        config_path: Explicit path to config file
        vault_path: Vault root path for fallback search

    Returns:
        FenceplusConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / "fenceplus.toml")
    if vault_path:
        search_paths.append(vault_path / "fenceplus.toml")

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    vault_data = toml_data.get("vault", {})
    vault_root = Path(vault_data.get("root", vault_path or Path(".")))

    settings_data = toml_data.get("settings", {})
    settings_file = Path(
        settings_data.get("file", vault_root / ".fenceplus" / "settings.yaml")
    )

    codeblock = Settings.from_data(toml_data.get("codeblock", {}))

    preview_data = toml_data.get("preview", {})
    preview = PreviewConfig(
        reconcile_delay_ms=int(preview_data.get("reconcile_delay_ms", 100)),
        line_height_px=float(preview_data.get("line_height_px", 20.0)),
        chars_per_row=int(preview_data.get("chars_per_row", 80)),
    )

    logging_data = toml_data.get("logging", {})
    logging_config = LoggingConfig(
        level=str(logging_data.get("level", "WARNING")).upper()
    )

    return FenceplusConfig(
        vault=VaultConfig(root=vault_root, settings_file=settings_file),
        codeblock=codeblock,
        preview=preview,
        logging=logging_config,
    )
