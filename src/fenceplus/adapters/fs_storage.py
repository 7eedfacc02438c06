import asyncio
from pathlib import Path
from typing import Iterable

from ..core.ports import FileReader


class FsFileReader(FileReader):
    def __init__(self, root: Path):
        self.root = root

    def resolve(self, path: Path | str) -> Path:
        """
        Absolute path for a vault-relative path.

        Raises:
            ValueError: path escapes the vault root
        """
        p = Path(path)
        if not p.is_absolute():
            p = self.root / p
        p = p.resolve()
        root = self.root.resolve()
        if p != root and root not in p.parents:
            raise ValueError(f"{path} is outside the vault")
        return p

    def read_sync(self, path: Path | str) -> str | None:
        p = self.resolve(path)
        return p.read_text(encoding="utf-8") if p.is_file() else None

    async def read_text(self, path: Path) -> str | None:
        return await asyncio.to_thread(self.read_sync, path)

    def list_notes(self) -> Iterable[Path]:
        if not self.root.exists():
            return []
        return sorted(
            p.relative_to(self.root)
            for p in self.root.rglob("*.md")
            if not any(part.startswith(".") for part in p.relative_to(self.root).parts)
        )
