"""Find the source extent and fence-open line of rendered code blocks.

Two strategies share one interface:

- ``BufferLocator`` reads the fence line from the live buffer of the document
  being edited, using per-element section info.
- ``RecoveredTextLocator`` reads the whole file back from storage and pairs
  code sections of the structural index with code elements by position.

``select_locator`` picks one by probing what the render context offers.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol, Sequence

from lxml.html import HtmlElement

from .model import LocatedBlock, SourceExtent, TextLines
from .ports import FileReader, LineSource, SectionIndex

logger = logging.getLogger(__name__)

LINE_START_ATTR = "data-line-start"
LINE_END_ATTR = "data-line-end"
BLOCK_CLASS = "fenceplus-block"


def in_code_section(code: HtmlElement) -> bool:
    """True when the element sits in the wrapper of a markdown code block."""
    pre = code.getparent()
    wrapper = pre.getparent() if pre is not None else None
    return wrapper is not None and BLOCK_CLASS in (wrapper.get("class") or "").split()


def section_from_attributes(el: HtmlElement) -> SourceExtent | None:
    """Read the extent stamped on the element or its closest ancestor."""
    node: HtmlElement | None = el
    while node is not None:
        start = node.get(LINE_START_ATTR)
        if start is not None:
            end = node.get(LINE_END_ATTR)
            try:
                return SourceExtent(
                    start_line=int(start),
                    end_line=int(end) if end is not None else None,
                )
            except ValueError:
                return None
        node = node.getparent()
    return None


@dataclass
class RenderContext:
    """What the host can tell us about the document being rendered."""

    source_path: Path | None = None
    buffer: LineSource | None = None
    section_info: Callable[[HtmlElement], SourceExtent | None] | None = None
    file_reader: FileReader | None = None
    section_index: SectionIndex | None = None


class CodeBlockLocator(Protocol):
    async def locate(
        self, codes: Sequence[HtmlElement], ctx: RenderContext
    ) -> list[LocatedBlock | None]:
        pass


class BufferLocator:
    async def locate(
        self, codes: Sequence[HtmlElement], ctx: RenderContext
    ) -> list[LocatedBlock | None]:
        """
        Raises:
            ValueError: the context has no buffer or no section info
        """
        if ctx.buffer is None or ctx.section_info is None:
            raise ValueError("BufferLocator needs a buffer and section info")
        buffer = ctx.buffer
        out: list[LocatedBlock | None] = []
        for code in codes:
            extent = ctx.section_info(code)
            if extent is None or not 0 <= extent.start_line < buffer.line_count:
                logger.debug("No buffer section for code element")
                out.append(None)
                continue
            out.append(
                LocatedBlock(
                    extent=extent,
                    fence_line=buffer.line(extent.start_line),
                    lines=buffer,
                )
            )
        return out


class RecoveredTextLocator:
    """
    Batch strategy for export/print rendering.

    ``codes`` must be every ``pre > code`` element of the whole document in
    document order. Elements that come from markdown code blocks are paired,
    the n-th with the n-th code section of the recovered text; any other
    ``pre > code`` (raw HTML in the note) is left unlocated.
    """

    async def locate(
        self, codes: Sequence[HtmlElement], ctx: RenderContext
    ) -> list[LocatedBlock | None]:
        """
        Raises:
            ValueError: the context has no source path, file reader or
                section index
        """
        if ctx.source_path is None:
            raise ValueError("RecoveredTextLocator needs a source path")
        if ctx.file_reader is None or ctx.section_index is None:
            raise ValueError("RecoveredTextLocator needs a file reader and a section index")
        text = await ctx.file_reader.read_text(ctx.source_path)
        if text is None:
            logger.debug("Could not recover text of %s", ctx.source_path)
            return [None] * len(codes)

        lines = TextLines(text)
        sections = [s for s in ctx.section_index.sections(text) if s.type == "code"]
        paired = [code for code in codes if in_code_section(code)]
        if len(sections) != len(paired):
            logger.debug(
                "%s: %d code sections for %d code elements",
                ctx.source_path, len(sections), len(paired),
            )

        out: list[LocatedBlock | None] = []
        position = 0
        for code in codes:
            if not in_code_section(code):
                out.append(None)
                continue
            section = sections[position] if position < len(sections) else None
            position += 1
            if section is None or section.start_line >= lines.line_count:
                out.append(None)
                continue
            out.append(
                LocatedBlock(
                    extent=SourceExtent(section.start_line, section.end_line),
                    fence_line=lines.line(section.start_line),
                    lines=lines,
                )
            )
        return out


def select_locator(ctx: RenderContext) -> CodeBlockLocator | None:
    """Pick a strategy from the capabilities the context exposes."""
    if ctx.buffer is not None and ctx.section_info is not None:
        return BufferLocator()
    if (
        ctx.source_path is not None
        and ctx.file_reader is not None
        and ctx.section_index is not None
    ):
        return RecoveredTextLocator()
    return None
