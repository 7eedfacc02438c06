from bisect import bisect_right

from ..core.model import Line, TextLines
from ..core.ports import TextBuffer


class MemoryTextBuffer(TextLines, TextBuffer):
    """In-memory editor buffer with offset <-> line lookup."""

    def __init__(self, text: str):
        super().__init__(text)
        self._starts: list[int] = []
        offset = 0
        for raw in self._lines:
            self._starts.append(offset)
            offset += len(raw) + 1

    @property
    def length(self) -> int:
        return len(self.text)

    def line_at(self, pos: int) -> Line:
        pos = min(max(pos, 0), self.length)
        index = bisect_right(self._starts, pos) - 1
        start = self._starts[index]
        raw = self._lines[index]
        return Line(index=index, from_=start, to=start + len(raw), text=raw.rstrip("\r"))

    def line_start(self, index: int) -> int:
        return self._starts[index]

    def replace(self, from_: int, to: int, insert: str) -> "MemoryTextBuffer":
        """New buffer with ``text[from_:to]`` replaced."""
        return MemoryTextBuffer(self.text[:from_] + insert + self.text[to:])
