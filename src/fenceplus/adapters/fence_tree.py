"""Line-level syntax tree classifying fenced code block lines."""

import re
from dataclasses import dataclass, field
from typing import Iterator

from ..core.model import (
    NODE_FENCE_CLOSE,
    NODE_FENCE_LINE,
    NODE_FENCE_OPEN,
    NODE_TEXT_LINE,
)
from ..core.ports import SyntaxTree
from .text_buffer import MemoryTextBuffer

_OPEN_RE = re.compile(r"^[ \t>]*(?:(`{3,})[^`]*|(~{3,}).*)$")


def _is_close(line: str, marker: str) -> bool:
    stripped = re.sub(r"^[ \t>]*", "", line)
    return re.fullmatch(re.escape(marker[0]) + "{%d,}[ \t]*" % len(marker), stripped) is not None


@dataclass(eq=False)
class LineNode:
    type_name: str
    from_: int
    to: int
    index: int
    tree: "FenceSyntaxTree" = field(repr=False)

    @property
    def next_sibling(self) -> "LineNode | None":
        return self.tree.node(self.index + 1)


class FenceSyntaxTree(SyntaxTree):
    """
    One sibling node per buffer line, typed as fence open, fence content,
    fence close or plain text.
    """

    def __init__(self, buffer: MemoryTextBuffer):
        self.buffer = buffer
        self._nodes: list[LineNode] = []
        marker: str | None = None
        for i in range(buffer.line_count):
            text = buffer.line(i)
            start = buffer.line_start(i)
            if marker is None:
                m = _OPEN_RE.match(text)
                if m:
                    marker = m.group(1) or m.group(2)
                    kind = NODE_FENCE_OPEN
                else:
                    kind = NODE_TEXT_LINE
            elif _is_close(text, marker):
                marker = None
                kind = NODE_FENCE_CLOSE
            else:
                kind = NODE_FENCE_LINE
            self._nodes.append(LineNode(kind, start, start + len(text), i, self))

    def node(self, index: int) -> LineNode | None:
        if 0 <= index < len(self._nodes):
            return self._nodes[index]
        return None

    def iterate(self, from_: int, to: int) -> Iterator[LineNode]:
        """Nodes overlapping ``[from_, to]`` in document order."""
        if not self._nodes:
            return
        index = self.buffer.line_at(from_).index
        while index < len(self._nodes):
            node = self._nodes[index]
            if node.from_ > to:
                break
            yield node
            index += 1
