"""Tests for the markdown-it section index and renderer."""

import pytest
from lxml import html as lxml_html
from markdown_it.token import Token

from fenceplus.adapters.markdown_parser import MarkdownRenderer, MarkdownSectionIndex, fence_extent
from fenceplus.core.locator import LINE_END_ATTR, LINE_START_ATTR
from fenceplus.core.model import Section

DOC = """# Demo

```python TI:"demo.py" HL:"1-2,4"
print(1)
print(2)
print(3)
print(4)
print(5)
```

~~~sh
echo hi
~~~
"""


def test_sections_of_simple_document():
    """Test headings and code sections with inclusive line extents."""
    sections = MarkdownSectionIndex().sections(DOC)

    assert sections == [
        Section("heading", 0, 0),
        Section("code", 2, 8),
        Section("code", 10, 12),
    ]


def test_unclosed_fence_runs_to_eof():
    """Test an unclosed fence counts every line up to EOF."""
    for text in ("```py\na\nb", "```py\na\nb\n"):
        sections = MarkdownSectionIndex().sections(text)
        code = [s for s in sections if s.type == "code"]
        assert len(code) == 1
        assert code[0].start_line == 0
        assert code[0].end_line - code[0].start_line - 1 == 2


def test_nested_fences_are_indexed():
    """Test fences inside containers still produce code sections."""
    text = "- item\n\n  ```js\n  x\n  ```\n\n> ```ts\n> y\n> ```\n"

    code = [s for s in MarkdownSectionIndex().sections(text) if s.type == "code"]

    assert code == [Section("code", 2, 4), Section("code", 6, 8)]


def test_indented_code_is_a_code_section():
    """Test indented code blocks take a position among code sections."""
    text = "Para\n\n    indented\n\n```py\nx\n```\n"

    code = [s for s in MarkdownSectionIndex().sections(text) if s.type == "code"]

    assert code == [Section("code", 2, 2), Section("code", 4, 6)]


def test_renderer_wraps_blocks_with_line_attrs():
    """Test each fenced block sits in a div carrying its extent."""
    root = lxml_html.fragment_fromstring(MarkdownRenderer().render(DOC), create_parent="div")

    wrappers = root.xpath("//div[contains(@class, 'fenceplus-block')]")
    assert len(wrappers) == 2
    assert wrappers[0].get(LINE_START_ATTR) == "2"
    assert wrappers[0].get(LINE_END_ATTR) == "8"
    assert "block-language-python" in wrappers[0].get("class")
    assert wrappers[1].get(LINE_START_ATTR) == "10"

    code = wrappers[0].find("pre/code")
    assert code.get("class") == "language-python"
    assert code.text.startswith("print(1)\n")


def test_renderer_without_line_attrs():
    """Test export rendering leaves no source positions behind."""
    rendered = MarkdownRenderer().render(DOC, line_attrs=False)

    assert LINE_START_ATTR not in rendered
    assert "fenceplus-block" in rendered


def test_fence_extent_needs_source_map():
    """Test a fence token without a source map is rejected."""
    token = Token("fence", "code", 0)

    with pytest.raises(ValueError):
        fence_extent(token, ["```py", "x", "```"])
