"""Live-preview view plugin: line highlights and line-number widgets."""

import logging
from typing import Callable

from ..core.assembler import is_candidate
from ..core.directives import parse_fence_line
from ..core.model import NODE_FENCE_CLOSE, NODE_FENCE_OPEN, AnnotationDirectives, ViewUpdate
from ..core.ports import EditorView, SyntaxNode
from ..core.settings import Settings
from .decorations import (
    LINE_SHOW_CLASS,
    Decoration,
    DecorationSet,
    DecorationSetBuilder,
    LineNumberWidget,
)

logger = logging.getLogger(__name__)


class LivePreviewPlugin:
    """
    Holds the decoration set of one editor view.

    The set is rebuilt wholesale on document changes, viewport changes and
    reset effects; there is no incremental patching.
    """

    def __init__(self, view: EditorView, settings: Settings):
        self.settings = settings
        self.decorations = self.build_decorations(view)

    def update(self, update: ViewUpdate) -> None:
        if update.doc_changed or update.viewport_changed or update.has_reset_effect:
            self.decorations = self.build_decorations(update.view)

    def build_decorations(self, view: EditorView) -> DecorationSet:
        builder = DecorationSetBuilder()
        from_, to = view.viewport
        try:
            for node in view.syntax_tree().iterate(from_, to):
                if not node.type_name.startswith(NODE_FENCE_OPEN):
                    continue
                head = view.buffer.line_at(node.from_)
                directives = parse_fence_line(head.text)
                if directives is None or not is_candidate(directives.language_tag, self.settings):
                    continue
                self._render_code_block_nodes(builder, node.next_sibling, view, directives)
        except Exception:
            logger.exception("Failed to build live-preview decorations")
            return DecorationSet.empty()
        return builder.finish()

    def _render_code_block_nodes(
        self,
        builder: DecorationSetBuilder,
        node: SyntaxNode | None,
        view: EditorView,
        directives: AnnotationDirectives,
    ) -> None:
        viewport_end = view.viewport[1]
        index = 0
        while (
            node is not None
            and not node.type_name.startswith(NODE_FENCE_CLOSE)
            and node.from_ <= viewport_end
        ):
            line = view.buffer.line_at(node.from_)
            if directives.is_highlighted(index + 1):
                builder.add(
                    line.from_,
                    line.from_,
                    Decoration.line(
                        line.from_,
                        attributes={"style": f"background-color: {self.settings.highlight_color}"},
                    ),
                )
            if self.settings.show_line_number:
                builder.add(
                    line.from_, line.from_, Decoration.line(line.from_, css_class=LINE_SHOW_CLASS)
                )
                builder.add(
                    line.from_,
                    line.from_,
                    Decoration.widget_at(
                        line.from_,
                        LineNumberWidget(index + 1, self.settings.show_dividing_line),
                    ),
                )
            index += 1
            node = node.next_sibling


def create_live_plugin(settings: Settings) -> Callable[[EditorView], LivePreviewPlugin]:
    """Plugin factory bound to one settings object."""

    def factory(view: EditorView) -> LivePreviewPlugin:
        return LivePreviewPlugin(view, settings)

    return factory
