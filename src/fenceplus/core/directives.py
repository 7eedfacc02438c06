"""Fence-line directive grammar and highlight range expansion."""

import re
from dataclasses import asdict
from typing import Any

from .model import AnnotationDirectives

# Language token right after the opening fence, e.g. "```python"
FENCE_LANG_RE = re.compile(r"^[ \t>]*(?:`{3,}|~{3,})[ \t]*([\w+#.-]+)")
TITLE_RE = re.compile(r'TI:"([^"\n]*)"', re.IGNORECASE)
HIGHLIGHT_RE = re.compile(r'HL:"([^"\n]*)"', re.IGNORECASE)
FOLD_RE = re.compile(r'"FOLD"', re.IGNORECASE)

_RANGE_TOKEN_RE = re.compile(r"([0-9]+)-([0-9]+)")
_NUMBER_TOKEN_RE = re.compile(r"[0-9]+")
_WS_RE = re.compile(r"\s+")


def fence_language(line: str) -> str | None:
    """Return the language token of a fence-open line, if any."""
    m = FENCE_LANG_RE.match(line)
    return m.group(1) if m else None


def parse_line_ranges(payload: str) -> list[tuple[int, int]]:
    """
    Split an HL payload into (start, end) pairs.

    Whitespace is removed first. "N-M" yields (N, M) as written, "N" yields
    (N, N). Anything else is ignored.
    """
    pairs: list[tuple[int, int]] = []
    for token in _WS_RE.sub("", payload).split(","):
        m = _RANGE_TOKEN_RE.fullmatch(token)
        if m:
            pairs.append((int(m.group(1)), int(m.group(2))))
        elif _NUMBER_TOKEN_RE.fullmatch(token):
            pairs.append((int(token), int(token)))
    return pairs


def expand_line_ranges(payload: str) -> list[int]:
    """
    Expand an HL payload into the 1-based lines it covers.

    Examples:
        >>> expand_line_ranges("1-3,5")
        [1, 2, 3, 5]
        >>> expand_line_ranges("5-3")
        []

    Ranges iterate upwards from their left endpoint, so a reversed range
    contributes nothing. The result is a plain union: no sorting, no
    deduplication.
    """
    lines: list[int] = []
    for start, end in parse_line_ranges(payload):
        lines.extend(range(start, end + 1))
    return lines


def parse_fence_line(line: str) -> AnnotationDirectives | None:
    """
    Parse the directives of a fence-open line.

    Returns None when the line carries no language tag. Each directive is
    optional and independent; a missing or malformed one keeps its default.
    """
    language = fence_language(line)
    if language is None:
        return None

    title_match = TITLE_RE.search(line)
    title = title_match.group(1) if title_match else ""

    ranges: tuple[tuple[int, int], ...] = ()
    lines: tuple[int, ...] = ()
    hl_match = HIGHLIGHT_RE.search(line)
    if hl_match:
        ranges = tuple(parse_line_ranges(hl_match.group(1)))
        lines = tuple(expand_line_ranges(hl_match.group(1)))

    return AnnotationDirectives(
        language_tag=language,
        title=title,
        highlight_ranges=ranges,
        highlight_lines=lines,
        collapsed=FOLD_RE.search(line) is not None,
    )


def directives_to_data(line: str) -> dict[str, Any] | None:
    """JSON-ready directives of a fence-open line, or None."""
    directives = parse_fence_line(line)
    if directives is None:
        return None
    data = asdict(directives)
    data["highlight_ranges"] = [list(r) for r in directives.highlight_ranges]
    data["highlight_lines"] = list(directives.highlight_lines)
    return data
