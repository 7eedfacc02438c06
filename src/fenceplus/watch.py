"""Watch mode: re-render reading-view HTML when notes change."""

import asyncio
import json
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Any, Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .reading.processor import render_page

logger = logging.getLogger(__name__)


class DebounceHandler(FileSystemEventHandler):
    """File system event handler with debouncing."""

    def __init__(
        self,
        vault_path: Path,
        on_batch: Callable[[set[Path], set[Path]], None] | None,
        debounce_ms: int = 150,
    ):
        super().__init__()
        self.vault_path = vault_path.resolve()
        self.on_batch = on_batch
        self.debounce_ms = debounce_ms

        # Pending changes by vault-relative path
        self.changed: set[Path] = set()
        self.deleted: set[Path] = set()
        self.last_event_time = 0.0

    def _should_skip(self, path: Path) -> bool:
        """Check if file should be skipped."""
        name = path.name

        if name.startswith("."):
            return True

        if name.endswith("~") or name.endswith(".swp") or name.startswith(".#"):
            return True

        if not name.endswith(".md"):
            return True

        return False

    def _note_path(self, path: Path) -> Path | None:
        """Vault-relative note path, or None for ignored files."""
        if self._should_skip(path):
            return None
        try:
            rel = path.resolve().relative_to(self.vault_path)
        except ValueError:
            return None
        if any(part.startswith(".") for part in rel.parts):
            return None
        return rel

    def _record(self, event: FileSystemEvent, deleted: bool = False) -> None:
        if event.is_directory:
            return
        note = self._note_path(Path(str(event.src_path)))
        if note is None:
            return
        if deleted:
            self.changed.discard(note)
            self.deleted.add(note)
        else:
            self.deleted.discard(note)
            self.changed.add(note)
        self.last_event_time = time.time()

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._record(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._record(event, deleted=True)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._record(event, deleted=True)
        dest = getattr(event, "dest_path", None)
        if dest:
            note = self._note_path(Path(str(dest)))
            if note is not None:
                self.changed.add(note)
                self.last_event_time = time.time()

    def check_and_flush(self) -> None:
        """Check if debounce period has elapsed and flush if so."""
        if not (self.changed or self.deleted):
            return

        elapsed = (time.time() - self.last_event_time) * 1000
        if elapsed >= self.debounce_ms:
            self.flush()

    def flush(self) -> None:
        """Process accumulated events."""
        if not (self.changed or self.deleted):
            return

        changed = set(self.changed)
        deleted = set(self.deleted)
        self.changed.clear()
        self.deleted.clear()

        if self.on_batch:
            self.on_batch(changed, deleted)


def output_path(out_dir: Path, note: Path) -> Path:
    return out_dir / note.with_suffix(".html")


def render_batch(runtime: Any, out_dir: Path, changed: set[Path], deleted: set[Path]) -> dict[str, list[str]]:
    """Render changed notes and drop the output of deleted ones."""
    rendered: list[str] = []
    removed: list[str] = []
    for note in sorted(changed):
        result = asyncio.run(runtime.render_file(note))
        if result is None:
            continue
        target = output_path(out_dir, note)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(render_page(result.html, title=note.stem), encoding="utf-8")
        rendered.append(str(note))
    for note in sorted(deleted):
        target = output_path(out_dir, note)
        if target.exists():
            target.unlink()
            removed.append(str(note))
    return {"rendered": rendered, "removed": removed}


def watch_vault(
    runtime: Any,
    out_dir: Path,
    debounce_ms: int = 150,
    quiet: bool = False,
    json_output: bool = False,
) -> int:
    """
    Watch the vault and keep rendered HTML in ``out_dir`` current.

    Returns:
        Exit code
    """
    vault_path = runtime.reader.root
    if not vault_path.exists():
        print(f"Error: Vault not found: {vault_path}", file=sys.stderr)
        return 1

    out_dir.mkdir(parents=True, exist_ok=True)

    # Initial full render
    initial = render_batch(runtime, out_dir, set(runtime.reader.list_notes()), set())
    if not quiet and not json_output:
        print(f"Rendered {len(initial['rendered'])} notes to {out_dir}", flush=True)

    running = True

    def handle_batch(changed: set[Path], deleted: set[Path]) -> None:
        start_time = time.time()
        try:
            counts = render_batch(runtime, out_dir, changed, deleted)
            duration_ms = int((time.time() - start_time) * 1000)
            if json_output:
                print(json.dumps({"type": "batch", **counts, "duration_ms": duration_ms}), flush=True)
            elif not quiet:
                print(
                    f"Rendered: ~{len(counts['rendered'])} -{len(counts['removed'])} ({duration_ms}ms)",
                    flush=True,
                )
        except Exception as e:
            logger.exception("Watch batch failed")
            if json_output:
                print(json.dumps({"type": "error", "message": str(e)}), flush=True)
            else:
                print(f"Error: {e}", file=sys.stderr, flush=True)

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal running
        running = False
        if not quiet and not json_output:
            print("\nShutting down...", flush=True)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    handler = DebounceHandler(vault_path, handle_batch, debounce_ms)
    observer = Observer()
    observer.schedule(handler, str(vault_path), recursive=True)

    if not quiet and not json_output:
        print(f"Watching {vault_path} (debounce: {debounce_ms}ms)", flush=True)
        print("Press Ctrl+C to stop", flush=True)

    observer.start()

    try:
        while running:
            time.sleep(0.1)
            handler.check_and_flush()
    finally:
        handler.flush()
        observer.stop()
        observer.join()

    if not quiet and not json_output:
        print("Watch stopped", flush=True)

    return 0
