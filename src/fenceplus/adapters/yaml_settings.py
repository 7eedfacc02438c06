import io
from pathlib import Path
from typing import Any

import yaml

from ..core.ports import SettingsStore


class YamlSettingsStore(SettingsStore):
    """Plugin data persisted as one YAML mapping on disk."""

    def __init__(self, path: Path):
        self.path = path

    def load_data(self) -> dict[str, Any] | None:
        if not self.path.exists():
            return None
        data = yaml.safe_load(io.StringIO(self.path.read_text(encoding="utf-8")))
        return data if isinstance(data, dict) else None

    def save_data(self, data: dict[str, Any]) -> None:
        buf = io.StringIO()
        yaml.safe_dump(data, buf, sort_keys=False, allow_unicode=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(buf.getvalue(), encoding="utf-8")
