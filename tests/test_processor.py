"""End-to-end tests for reading-view post-processing."""

import asyncio
import tempfile
from pathlib import Path

import pytest
from lxml import html as lxml_html

from fenceplus.adapters.fs_storage import FsFileReader
from fenceplus.adapters.markdown_parser import MarkdownRenderer
from fenceplus.adapters.measure import MonospaceMeasurer
from fenceplus.core.locator import RenderContext
from fenceplus.core.settings import Settings
from fenceplus.reading import processor as processor_module
from fenceplus.reading.dom import get_style, role_children
from fenceplus.reading.overlay import (
    HIGHLIGHT_WRAP_CLASS,
    LINENUM_WRAP_CLASS,
    TITLE_CLASS,
)
from fenceplus.reading.processor import (
    ReadingViewProcessor,
    build_context,
    render_document,
    render_page,
)
from fenceplus.reading.reconcile import HeightReconciler

DEMO = """# Demo

```python TI:"demo.py" HL:"1-2,4"
print(1)
print(2)
print(3)
print(4)
print(5)
```

Some text.

```
untagged
```

```mermaid
graph TD
```
"""


class ManualScheduler:
    def call_later(self, delay, callback):
        return ManualHandle()


class ManualHandle:
    def cancel(self):
        pass


@pytest.fixture
def vault():
    """Temporary vault holding the demo note."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "demo.md").write_text(DEMO, encoding="utf-8")
        yield root


def render(text=DEMO, settings=None, export=False, reader=None, reconciler=None):
    return asyncio.run(
        render_document(
            text,
            settings or Settings(exclude_langs=["mermaid"]),
            source_path=Path("demo.md"),
            export=export,
            file_reader=reader,
            reconciler=reconciler,
        )
    )


def pres(result):
    root = lxml_html.fragment_fromstring(result.html)
    return root.xpath("//pre")


def test_demo_block_end_to_end():
    """Test the demo fence renders a title, five numbers and three shaded rows."""
    result = render()

    assert len(result.occurrences) == 1
    occ = result.occurrences[0]
    assert occ.language_name == "python"
    assert occ.title == "demo.py"
    assert occ.line_count == 5

    pre = pres(result)[0]
    title = role_children(pre, TITLE_CLASS)[0]
    assert title.text == "demo.py"
    assert title.find("span").text == "Python"
    assert len(role_children(pre, LINENUM_WRAP_CLASS)[0]) == 5

    rows = role_children(pre, HIGHLIGHT_WRAP_CLASS)[0]
    shaded = [i + 1 for i, row in enumerate(rows) if get_style(row, "background-color") != "transparent"]
    assert shaded == [1, 2, 4]


def test_untagged_and_excluded_blocks_untouched():
    """Test blocks without a language or with an excluded one get no overlays."""
    result = render()

    untagged, mermaid = pres(result)[1:]
    for pre in (untagged, mermaid):
        assert role_children(pre, TITLE_CLASS) == []
        assert pre.get("style") is None


def test_excluded_language_ignores_case():
    """Test an upper-case fence tag is excluded by its lower-case name."""
    text = '```Python TI:"x"\nprint(1)\n```\n'

    result = render(text=text, settings=Settings(exclude_langs=["python"]))

    assert result.occurrences == []
    assert TITLE_CLASS not in result.html

    result = render(text=text, settings=Settings())

    assert [o.language_name for o in result.occurrences] == ["python"]


def test_no_candidates_means_no_mutation():
    """Test a document with only excluded blocks renders unchanged."""
    text = "```mermaid\ngraph TD\n```\n"
    settings = Settings(exclude_langs=["mermaid"])
    renderer = MarkdownRenderer()

    root = lxml_html.fragment_fromstring(renderer.render(text), create_parent="div")
    before = lxml_html.tostring(root, encoding="unicode")

    occurrences = asyncio.run(ReadingViewProcessor(settings).process(root, build_context(text)))

    assert occurrences == []
    assert lxml_html.tostring(root, encoding="unicode") == before


def test_export_matches_interactive(vault):
    """Test both locator strategies produce the same occurrences."""
    reader = FsFileReader(vault)

    live = render()
    export = render(export=True, reader=reader)

    assert "data-line-start" not in export.html
    assert [
        (o.language_name, o.line_count, o.directives, o.source_extent) for o in live.occurrences
    ] == [
        (o.language_name, o.line_count, o.directives, o.source_extent) for o in export.occurrences
    ]


def test_raw_html_code_does_not_steal_directives(vault):
    """Test a raw HTML code block leaves the next fence its own directives."""
    text = (
        '<pre><code class="language-js">raw()\n</code></pre>\n\n'
        '```python TI:"demo.py" HL:"1"\nprint(1)\n```\n'
    )
    (vault / "raw.md").write_text(text, encoding="utf-8")

    def blocks(export):
        result = asyncio.run(
            render_document(
                text,
                Settings(),
                source_path=Path("raw.md"),
                export=export,
                file_reader=FsFileReader(vault),
            )
        )
        return [(o.language_name, o.title, o.line_count) for o in result.occurrences]

    assert blocks(export=False) == [("python", "demo.py", 1)]
    assert blocks(export=True) == [("python", "demo.py", 1)]


def test_export_without_readable_note(vault):
    """Test export of a note missing from storage leaves blocks undecorated."""
    result = asyncio.run(
        render_document(
            DEMO,
            Settings(),
            source_path=Path("missing.md"),
            export=True,
            file_reader=FsFileReader(vault),
        )
    )

    assert result.occurrences == []
    assert TITLE_CLASS not in result.html


def test_reconciler_heights_stamped():
    """Test the render flushes one reconciliation pass."""
    reconciler = HeightReconciler(ManualScheduler(), MonospaceMeasurer(line_height_px=18))

    result = render(reconciler=reconciler)

    pre = pres(result)[0]
    rows = role_children(pre, LINENUM_WRAP_CLASS)[0]
    assert [get_style(row, "height") for row in rows] == ["18px"] * 5
    assert len(reconciler.tracked) == 1


def test_excluded_on_rerun_stops_tracking():
    """Test a block excluded on a later pass is no longer measured."""
    renderer = MarkdownRenderer()
    root = lxml_html.fragment_fromstring(renderer.render(DEMO), create_parent="div")
    reconciler = HeightReconciler(ManualScheduler(), MonospaceMeasurer())
    proc = ReadingViewProcessor(Settings(exclude_langs=["mermaid"]), reconciler)
    ctx = build_context(DEMO)

    asyncio.run(proc.process(root, ctx))
    assert len(reconciler.tracked) == 1

    proc.settings = Settings(exclude_langs=["mermaid", "python"])
    asyncio.run(proc.process(root, ctx))

    assert reconciler.tracked == []


def test_block_failure_is_isolated(monkeypatch):
    """Test a failing block stays undecorated while others are processed."""
    text = "```py\na\n```\n\n```js\nb\n```\n"
    real_inject = processor_module.inject_overlays
    calls = []

    def flaky_inject(occurrence, pre, settings):
        calls.append(occurrence.language_name)
        if occurrence.language_name == "py":
            raise RuntimeError("boom")
        real_inject(occurrence, pre, settings)

    monkeypatch.setattr(processor_module, "inject_overlays", flaky_inject)

    result = render(text=text, settings=Settings())

    assert calls == ["py", "js"]
    assert [o.language_name for o in result.occurrences] == ["js"]


def test_process_twice_is_stable():
    """Test a second pass over the same root does not duplicate overlays."""
    renderer = MarkdownRenderer()
    root = lxml_html.fragment_fromstring(renderer.render(DEMO), create_parent="div")
    proc = ReadingViewProcessor(Settings())
    ctx = build_context(DEMO)

    asyncio.run(proc.process(root, ctx))
    asyncio.run(proc.process(root, ctx))

    pre = root.xpath("//pre")[0]
    assert len(role_children(pre, TITLE_CLASS)) == 1
    assert len(role_children(pre, LINENUM_WRAP_CLASS)) == 1


def test_no_locator_strategy():
    """Test nothing is decorated when the context offers no strategy."""
    root = lxml_html.fragment_fromstring(MarkdownRenderer().render(DEMO), create_parent="div")

    occurrences = asyncio.run(ReadingViewProcessor(Settings()).process(root, RenderContext()))

    assert occurrences == []


def test_unclosed_fence_line_count():
    """Test an unclosed fence counts every line to EOF in both modes."""
    text = '```sh TI:"run"\necho 1\necho 2\n'

    result = render(text=text, settings=Settings())

    assert result.occurrences[0].line_count == 2


def test_render_page():
    """Test the standalone page wraps the fragment."""
    page = render_page("<div>x</div>", title="a <b>")

    assert page.startswith("<!DOCTYPE html>")
    assert "<title>a &lt;b&gt;</title>" in page
    assert "<div>x</div>" in page
    assert ".fenceplus-title" in page
