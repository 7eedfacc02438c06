from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .ports import EditorView, LineSource

# Syntax node type names produced by the host's fence-aware tree
NODE_FENCE_OPEN = "codeblock-begin"
NODE_FENCE_LINE = "codeblock-line"
NODE_FENCE_CLOSE = "codeblock-end"
NODE_TEXT_LINE = "line"


@dataclass(frozen=True)
class AnnotationDirectives:
    language_tag: str
    title: str = ""
    highlight_ranges: tuple[tuple[int, int], ...] = ()  # 1-based, inclusive
    highlight_lines: tuple[int, ...] = ()  # expanded membership
    collapsed: bool = False

    def is_highlighted(self, line_no: int) -> bool:
        return line_no in self.highlight_lines


@dataclass(frozen=True)
class SourceExtent:
    start_line: int  # 0-based fence-open line
    end_line: int | None = None  # 0-based fence-close line, inclusive

    @property
    def content_line_count(self) -> int | None:
        if self.end_line is None:
            return None
        return max(0, self.end_line - self.start_line - 1)


@dataclass(frozen=True)
class Section:
    type: str  # "code" | "paragraph" | "heading" | ...
    start_line: int
    end_line: int


@dataclass(frozen=True)
class Line:
    index: int  # 0-based
    from_: int  # char offset of line start
    to: int  # char offset of line end (excluding newline)
    text: str


class TextLines:
    """Plain line accessor over a string; lines split on LF."""

    def __init__(self, text: str):
        self.text = text
        self._lines = text.split("\n")

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line(self, index: int) -> str:
        if index < 0:
            raise IndexError(index)
        return self._lines[index].rstrip("\r")


@dataclass
class LocatedBlock:
    extent: SourceExtent
    fence_line: str
    lines: LineSource | None = None  # accessor the extent refers to


@dataclass
class CodeBlockOccurrence:
    language_name: str
    line_count: int
    directives: AnnotationDirectives
    source_extent: SourceExtent | None = None

    @property
    def title(self) -> str:
        return self.directives.title


class ResetEffect:
    """Marker effect asking live-preview plugins to rebuild from scratch."""

    def __repr__(self) -> str:
        return "ResetEffect()"


RESET_EFFECT = ResetEffect()


@dataclass
class Transaction:
    effects: Sequence[object] = ()


@dataclass
class ViewUpdate:
    view: EditorView
    doc_changed: bool = False
    viewport_changed: bool = False
    transactions: Sequence[Transaction] = field(default_factory=tuple)

    @property
    def has_reset_effect(self) -> bool:
        return any(
            isinstance(effect, ResetEffect)
            for tr in self.transactions
            for effect in tr.effects
        )
