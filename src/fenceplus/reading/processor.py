"""Reading-view post-processing: locate, assemble, inject, reconcile."""

import html
import logging
from dataclasses import dataclass, field
from pathlib import Path

from lxml import html as lxml_html
from lxml.html import HtmlElement

from ..adapters.markdown_parser import MarkdownRenderer, MarkdownSectionIndex
from ..core.assembler import assemble_occurrence, is_candidate, language_from_classes
from ..core.locator import RenderContext, section_from_attributes, select_locator
from ..core.model import CodeBlockOccurrence, TextLines
from ..core.ports import FileReader
from ..core.settings import Settings
from .dom import find_code_elements
from .overlay import inject_overlays
from .reconcile import HeightReconciler

logger = logging.getLogger(__name__)

PAGE_CSS = """
.fenceplus-wrap pre { position: relative; }
.fenceplus-title { position: absolute; top: 0; left: 0; right: 0; padding: 6px 12px; cursor: pointer; }
.fenceplus-lang { position: absolute; right: 12px; opacity: 0.7; }
.fenceplus-title[closed] ~ code, .fenceplus-title[closed] ~ span { display: none; }
.fenceplus-pre-has-linenum code { display: block; padding-left: 3em; }
.fenceplus-linenum-wrap { position: absolute; left: 0; width: 2.5em; counter-reset: fenceplus-line; }
.fenceplus-linenum { display: block; text-align: right; counter-increment: fenceplus-line; }
.fenceplus-linenum::before { content: counter(fenceplus-line); }
.fenceplus-highlight-wrap { position: absolute; left: 0; right: 0; pointer-events: none; }
.fenceplus-highlight { display: block; }
"""


@dataclass
class RenderResult:
    html: str
    occurrences: list[CodeBlockOccurrence] = field(default_factory=list)


class ReadingViewProcessor:
    """
    Decorates every eligible ``pre > code`` block under a rendered root.

    Blocks without a language, or with an excluded one, are left untouched.
    Any failure on one block is logged and that block stays undecorated.
    """

    def __init__(self, settings: Settings, reconciler: HeightReconciler | None = None):
        self.settings = settings
        self.reconciler = reconciler

    async def process(self, root: HtmlElement, ctx: RenderContext) -> list[CodeBlockOccurrence]:
        codes = find_code_elements(root)
        languages = [language_from_classes(code.get("class")) for code in codes]
        if not any(is_candidate(lang, self.settings) for lang in languages):
            self._untrack(codes)
            return []

        locator = select_locator(ctx)
        if locator is None:
            logger.debug("No locator strategy for %s", ctx.source_path or "<buffer>")
            return []

        try:
            located = await locator.locate(codes, ctx)
        except Exception:
            logger.exception("Locating code blocks failed for %s", ctx.source_path or "<buffer>")
            return []

        occurrences: list[CodeBlockOccurrence] = []
        for code, language, loc in zip(codes, languages, located):
            if language is None or not is_candidate(language, self.settings) or loc is None:
                self._untrack([code])
                continue
            pre = code.getparent()
            try:
                occurrence = assemble_occurrence(language, loc, code.text_content(), self.settings)
                inject_overlays(occurrence, pre, self.settings)
            except Exception:
                logger.exception("Failed to decorate a %s block", language)
                self._untrack([code])
                continue
            occurrences.append(occurrence)
            if self.reconciler is not None:
                self.reconciler.track(pre, occurrence, loc)

        if occurrences and self.reconciler is not None:
            self.reconciler.schedule()
        return occurrences

    def _untrack(self, codes: list[HtmlElement]) -> None:
        # blocks no longer decorated stop being measured
        if self.reconciler is not None:
            for code in codes:
                self.reconciler.untrack(code.getparent())


def build_context(
    text: str,
    source_path: Path | None = None,
    export: bool = False,
    file_reader: FileReader | None = None,
) -> RenderContext:
    """
    Interactive rendering exposes the buffer and per-block section info;
    export rendering only knows the path and must recover the text.
    """
    if export:
        return RenderContext(
            source_path=source_path,
            file_reader=file_reader,
            section_index=MarkdownSectionIndex(),
        )
    return RenderContext(
        source_path=source_path,
        buffer=TextLines(text),
        section_info=section_from_attributes,
    )


async def render_document(
    text: str,
    settings: Settings,
    *,
    source_path: Path | None = None,
    export: bool = False,
    file_reader: FileReader | None = None,
    renderer: MarkdownRenderer | None = None,
    reconciler: HeightReconciler | None = None,
) -> RenderResult:
    """Render markdown to decorated HTML (a fragment rooted at one div)."""
    renderer = renderer or MarkdownRenderer()
    body = renderer.render(text, line_attrs=not export)
    root = lxml_html.fragment_fromstring(body, create_parent="div")
    root.set("class", "markdown-preview-view")

    ctx = build_context(text, source_path=source_path, export=export, file_reader=file_reader)
    processor = ReadingViewProcessor(settings, reconciler)
    occurrences = await processor.process(root, ctx)
    if reconciler is not None and occurrences:
        reconciler.flush()
    return RenderResult(lxml_html.tostring(root, encoding="unicode"), occurrences)


def render_page(fragment: str, title: str = "") -> str:
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{html.escape(title)}</title>\n<style>{PAGE_CSS}</style>\n"
        f"</head>\n<body>\n{fragment}\n</body>\n</html>\n"
    )
