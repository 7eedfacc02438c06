from ..core.model import RESET_EFFECT, Transaction, ViewUpdate
from ..core.ports import EditorView
from .fence_tree import FenceSyntaxTree
from .text_buffer import MemoryTextBuffer


class MemoryEditorView(EditorView):
    """
    Minimal editor view over an in-memory buffer.

    Edits and scrolls return the ViewUpdate a host editor would dispatch.
    """

    def __init__(self, text: str, viewport: tuple[int, int] | None = None):
        self.buffer = MemoryTextBuffer(text)
        self.viewport = viewport or (0, self.buffer.length)
        self._tree: FenceSyntaxTree | None = None

    def syntax_tree(self) -> FenceSyntaxTree:
        if self._tree is None or self._tree.buffer is not self.buffer:
            self._tree = FenceSyntaxTree(self.buffer)
        return self._tree

    def edit(self, from_: int, to: int, insert: str) -> ViewUpdate:
        vp_from, vp_to = self.viewport
        follows_end = vp_to >= self.buffer.length
        self.buffer = self.buffer.replace(from_, to, insert)
        length = self.buffer.length
        self.viewport = (min(vp_from, length), length if follows_end else min(vp_to, length))
        return ViewUpdate(view=self, doc_changed=True)

    def scroll_to(self, from_: int, to: int) -> ViewUpdate:
        self.viewport = (from_, to)
        return ViewUpdate(view=self, viewport_changed=True)

    def reset(self) -> ViewUpdate:
        return ViewUpdate(view=self, transactions=(Transaction(effects=(RESET_EFFECT,)),))
