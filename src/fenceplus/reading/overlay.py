"""Reading-view overlays: title bar, line-number column, highlight column.

All overlays hang off the block's ``<pre>`` element and are identified by a
role class. Every injection removes same-role nodes first, so repeated
passes never stack duplicates or keep rows from an older line count.
"""

from lxml import etree
from lxml import html as lxml_html
from lxml.html import HtmlElement

from ..core.model import CodeBlockOccurrence
from ..core.settings import DEFAULT_TITLE_BACKGROUND_COLOR, Settings
from .dom import add_class, remove_role, set_style

CB_PADDING_TOP = "35px"

WRAP_CLASS = "fenceplus-wrap"
PRE_LINENUM_CLASS = "fenceplus-pre-has-linenum"
TITLE_CLASS = "fenceplus-title"
LANG_CLASS = "fenceplus-lang"
LINENUM_WRAP_CLASS = "fenceplus-linenum-wrap"
LINENUM_CLASS = "fenceplus-linenum"
HIGHLIGHT_WRAP_CLASS = "fenceplus-highlight-wrap"
HIGHLIGHT_CLASS = "fenceplus-highlight"
CLOSED_ATTR = "closed"

TOGGLE_SCRIPT = f"this.toggleAttribute('{CLOSED_ATTR}')"


def display_language(language: str) -> str:
    return language[:1].upper() + language[1:]


def toggle_collapsed(title: HtmlElement) -> bool:
    """Flip the collapse hook on a title bar; returns True when now closed."""
    if title.get(CLOSED_ATTR) is not None:
        del title.attrib[CLOSED_ATTR]
        return False
    title.set(CLOSED_ATTR, "")
    return True


def add_title_bar(occurrence: CodeBlockOccurrence, pre: HtmlElement, settings: Settings) -> HtmlElement:
    set_style(pre, "position", "relative", important=True)
    set_style(pre, "padding-top", CB_PADDING_TOP, important=True)
    remove_role(pre, TITLE_CLASS)

    title = lxml_html.Element("div")
    title.set("class", TITLE_CLASS)
    title.text = occurrence.title
    if occurrence.directives.collapsed:
        title.set(CLOSED_ATTR, "")
    if settings.title_font_color:
        set_style(title, "color", settings.title_font_color, important=True)
    set_style(
        title,
        "background-color",
        settings.title_background_color or DEFAULT_TITLE_BACKGROUND_COLOR,
    )
    title.set("onclick", TOGGLE_SCRIPT)

    if settings.show_lang_name_in_top_right:
        lang = etree.SubElement(title, "span")
        lang.set("class", LANG_CLASS)
        lang.text = display_language(occurrence.language_name)

    collapser = etree.SubElement(title, "div")
    collapser.set("class", "collapser")
    handle = etree.SubElement(collapser, "div")
    handle.set("class", "handle")

    pre.insert(0, title)
    return title


def add_line_numbers(occurrence: CodeBlockOccurrence, pre: HtmlElement, settings: Settings) -> HtmlElement:
    remove_role(pre, LINENUM_WRAP_CLASS)
    column = etree.SubElement(pre, "span")
    column.set("class", LINENUM_WRAP_CLASS)
    set_style(column, "top", CB_PADDING_TOP)
    if settings.show_dividing_line:
        set_style(column, "border-right", "1px currentColor solid")
    for _ in range(occurrence.line_count):
        row = etree.SubElement(column, "span")
        row.set("class", LINENUM_CLASS)
    add_class(pre, PRE_LINENUM_CLASS)
    return column


def add_highlight_column(occurrence: CodeBlockOccurrence, pre: HtmlElement, settings: Settings) -> HtmlElement:
    remove_role(pre, HIGHLIGHT_WRAP_CLASS)
    column = etree.SubElement(pre, "span")
    column.set("class", HIGHLIGHT_WRAP_CLASS)
    set_style(column, "top", CB_PADDING_TOP)
    for i in range(occurrence.line_count):
        row = etree.SubElement(column, "span")
        row.set("class", HIGHLIGHT_CLASS)
        if occurrence.directives.is_highlighted(i + 1):
            set_style(row, "background-color", settings.highlight_color)
        else:
            set_style(row, "background-color", "transparent")
    return column


def inject_overlays(occurrence: CodeBlockOccurrence, pre: HtmlElement, settings: Settings) -> None:
    """
    (Re)build every overlay of one block.

    Column row counts always equal ``occurrence.line_count``; they are not
    checked against the rendered code.
    """
    wrap = pre.getparent()
    if wrap is not None:
        add_class(wrap, WRAP_CLASS)

    add_title_bar(occurrence, pre, settings)

    if settings.show_line_number:
        add_line_numbers(occurrence, pre, settings)
    else:
        remove_role(pre, LINENUM_WRAP_CLASS)

    if occurrence.directives.highlight_lines:
        add_highlight_column(occurrence, pre, settings)
    else:
        remove_role(pre, HIGHLIGHT_WRAP_CLASS)
