from pathlib import Path
from typing import Any, Callable, Iterator, Protocol

from lxml.html import HtmlElement

from .model import Line, Section


class LineSource(Protocol):
    """
    Read-only line accessor. Indices are 0-based document lines.
    """

    @property
    def line_count(self) -> int:
        pass

    def line(self, index: int) -> str:
        pass


class TextBuffer(LineSource, Protocol):
    """
    Addressable buffer of the document currently open for editing.
    """

    @property
    def length(self) -> int:
        pass

    def line_at(self, pos: int) -> Line:
        pass


class SyntaxNode(Protocol):
    type_name: str
    from_: int
    to: int

    @property
    def next_sibling(self) -> "SyntaxNode | None":
        pass


class SyntaxTree(Protocol):
    def iterate(self, from_: int, to: int) -> Iterator[SyntaxNode]:
        pass


class EditorView(Protocol):
    """
    Live-preview editor: buffer, visible range and the host's syntax tree.
    """

    buffer: TextBuffer
    viewport: tuple[int, int]

    def syntax_tree(self) -> SyntaxTree:
        pass


class FileReader(Protocol):
    """
    Read a whole file as text by path; None when it does not exist.
    """

    async def read_text(self, path: Path) -> str | None:
        pass


class SectionIndex(Protocol):
    """
    Structural index of a document: ordered (type, start, end) records.
    """

    def sections(self, text: str) -> list[Section]:
        pass


class TextMeasurer(Protocol):
    """
    Rendered pixel height of an off-tree probe element.
    """

    def measure(self, probe: HtmlElement) -> float:
        pass


class Cancellable(Protocol):
    def cancel(self) -> None:
        pass


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> Cancellable:
        pass


class SettingsStore(Protocol):
    """
    Host key/value persistence for plugin settings.
    """

    def load_data(self) -> dict[str, Any] | None:
        pass

    def save_data(self, data: dict[str, Any]) -> None:
        pass
