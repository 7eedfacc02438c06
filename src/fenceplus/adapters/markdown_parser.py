import html
import re
from typing import Any, Sequence

from markdown_it import MarkdownIt
from markdown_it.token import Token

from ..core.locator import BLOCK_CLASS, LINE_END_ATTR, LINE_START_ATTR
from ..core.model import Section
from ..core.ports import SectionIndex

_SECTION_TYPES = {
    "paragraph_open": "paragraph",
    "heading_open": "heading",
    "blockquote_open": "blockquote",
    "bullet_list_open": "list",
    "ordered_list_open": "list",
    "hr": "thematicBreak",
    "html_block": "html",
    "table_open": "table",
}


def _closes_fence(line: str, markup: str) -> bool:
    if not markup:
        return False
    # container prefixes (blockquote markers, list indent) do not matter here
    line = re.sub(r"^[ \t>]*", "", line.rstrip("\r"))
    pattern = "^" + re.escape(markup[0]) + "{" + str(len(markup)) + r",}[ \t]*$"
    return re.match(pattern, line) is not None


def fence_extent(token: Token, lines: Sequence[str]) -> tuple[int, int]:
    """
    Inclusive (open, close) line pair for a fence token.

    markdown-it maps are end-exclusive and an unclosed fence runs to EOF; in
    that case the line past EOF stands in for the close line, so the content
    line count stays ``close - open - 1`` either way.

    Raises:
        ValueError: the token carries no source map
    """
    if token.map is None:
        raise ValueError(f"{token.type} token has no source map")
    start, end = token.map
    last = end - 1
    if last > start and last < len(lines) and _closes_fence(lines[last], token.markup):
        return start, last
    return start, end


def build_markdown() -> MarkdownIt:
    return MarkdownIt("commonmark").enable("table").enable("strikethrough")


class MarkdownSectionIndex(SectionIndex):
    """Block sections of a document; every code block counts, nested or not."""

    def __init__(self, md: MarkdownIt | None = None):
        self.md = md or build_markdown()

    def sections(self, text: str) -> list[Section]:
        lines = text.split("\n")
        out: list[Section] = []
        for token in self.md.parse(text):
            if token.map is None or token.nesting == -1:
                continue
            if token.type == "fence":
                start, end = fence_extent(token, lines)
                out.append(Section("code", start, end))
            elif token.type == "code_block":
                out.append(Section("code", token.map[0], token.map[1] - 1))
            elif token.level == 0 and token.type in _SECTION_TYPES:
                out.append(Section(_SECTION_TYPES[token.type], token.map[0], token.map[1] - 1))
        return out


class MarkdownRenderer:
    """
    Markdown to HTML with every code block wrapped in its own section div.

    With ``line_attrs`` the wrapper carries the block's source extent, the
    way an interactive preview knows where each block came from.
    """

    def __init__(self, md: MarkdownIt | None = None):
        self._md = md or build_markdown()

        default_fence = self._md.renderer.rules["fence"]
        default_code_block = self._md.renderer.rules["code_block"]

        def custom_fence(tokens, idx, options, env):
            token = tokens[idx]
            attrs = ""
            if env.get("line_attrs") and token.map:
                start, end = fence_extent(token, env.get("lines", []))
                attrs = f' {LINE_START_ATTR}="{start}" {LINE_END_ATTR}="{end}"'
            lang = token.info.strip().split(maxsplit=1)[0] if token.info.strip() else ""
            block_class = BLOCK_CLASS
            if lang:
                block_class += f" block-language-{html.escape(lang)}"
            inner = default_fence(tokens, idx, options, env)
            return f'<div class="{block_class}"{attrs}>{inner}</div>\n'

        def custom_code_block(tokens, idx, options, env):
            token = tokens[idx]
            attrs = ""
            if env.get("line_attrs") and token.map:
                attrs = (
                    f' {LINE_START_ATTR}="{token.map[0]}"'
                    f' {LINE_END_ATTR}="{token.map[1] - 1}"'
                )
            inner = default_code_block(tokens, idx, options, env)
            return f'<div class="{BLOCK_CLASS}"{attrs}>{inner}</div>\n'

        self._md.renderer.rules["fence"] = custom_fence
        self._md.renderer.rules["code_block"] = custom_code_block

    def render(self, text: str, line_attrs: bool = True) -> str:
        env: dict[str, Any] = {"lines": text.split("\n"), "line_attrs": line_attrs}
        return self._md.render(text, env)
