"""Runtime wiring helper for CLI, API and watch mode."""

import logging
from dataclasses import dataclass
from pathlib import Path

from .adapters.editor_view import MemoryEditorView
from .adapters.fs_storage import FsFileReader
from .adapters.markdown_parser import MarkdownRenderer
from .adapters.measure import MonospaceMeasurer
from .adapters.scheduler import AsyncioScheduler
from .adapters.yaml_settings import YamlSettingsStore
from .config import FenceplusConfig, load_config
from .core.ports import SettingsStore
from .core.settings import Settings
from .live.decorations import DecorationSet
from .live.plugin import LivePreviewPlugin
from .reading.processor import RenderResult, render_document
from .reading.reconcile import HeightReconciler

logger = logging.getLogger(__name__)


def load_settings(config: FenceplusConfig, store: SettingsStore) -> Settings:
    """Defaults, then the [codeblock] table, then persisted plugin data."""
    return Settings.from_data(store.load_data(), base=config.codeblock)


@dataclass
class Runtime:
    """Container for all wired components."""
    config: FenceplusConfig
    store: SettingsStore
    settings: Settings
    reader: FsFileReader
    renderer: MarkdownRenderer
    measurer: MonospaceMeasurer

    def save_settings(self) -> None:
        self.store.save_data(self.settings.to_data())

    def new_reconciler(self) -> HeightReconciler:
        return HeightReconciler(
            AsyncioScheduler(),
            self.measurer,
            delay_ms=self.config.preview.reconcile_delay_ms,
        )

    async def render_file(self, path: Path | str, export: bool = False) -> RenderResult | None:
        """
        Render one vault note; None when it does not exist.

        Interactive mode treats the note text as the open buffer; export
        mode recovers the text through the file reader.
        """
        text = await self.reader.read_text(Path(path))
        if text is None:
            return None
        result = await render_document(
            text,
            self.settings,
            source_path=Path(path),
            export=export,
            file_reader=self.reader,
            renderer=self.renderer,
            reconciler=self.new_reconciler(),
        )
        logger.info("Rendered %s: %d code blocks decorated", path, len(result.occurrences))
        return result

    def decorations_for(self, text: str, viewport: tuple[int, int] | None = None) -> DecorationSet:
        view = MemoryEditorView(text, viewport)
        return LivePreviewPlugin(view, self.settings).decorations


def build_runtime(vault_path: Path | None = None, config_path: Path | None = None) -> Runtime:
    """Build and wire all components for a vault."""
    config = load_config(config_path=config_path, vault_path=vault_path)

    if vault_path is not None:
        config.vault.root = vault_path

    store = YamlSettingsStore(config.vault.settings_file)
    settings = load_settings(config, store)

    return Runtime(
        config=config,
        store=store,
        settings=settings,
        reader=FsFileReader(config.vault.root),
        renderer=MarkdownRenderer(),
        measurer=MonospaceMeasurer(
            line_height_px=config.preview.line_height_px,
            chars_per_row=config.preview.chars_per_row,
        ),
    )
