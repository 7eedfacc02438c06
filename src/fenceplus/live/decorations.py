"""Live-preview decoration values and an ordered decoration set."""

from dataclasses import dataclass, field, replace
from typing import Any, Iterator, Mapping, Sequence

from lxml import html as lxml_html
from lxml.html import HtmlElement

LINE_NUM_CLASS = "fenceplus-line-num"
LINE_SHOW_CLASS = "fenceplus-line-show"


@dataclass(frozen=True)
class LineNumberWidget:
    number: int
    show_dividing_line: bool = False

    def to_dom(self) -> HtmlElement:
        span = lxml_html.Element("span")
        span.set("class", LINE_NUM_CLASS)
        span.text = str(self.number)
        if self.show_dividing_line:
            span.set("style", "border-right: 1px currentColor solid")
        return span

    def to_html(self) -> str:
        return lxml_html.tostring(self.to_dom(), encoding="unicode")


@dataclass(frozen=True)
class Decoration:
    kind: str  # "line" | "widget"
    from_: int
    to: int
    attributes: Mapping[str, str] = field(default_factory=dict)
    css_class: str | None = None
    widget: LineNumberWidget | None = None

    @classmethod
    def line(
        cls, pos: int, attributes: Mapping[str, str] | None = None, css_class: str | None = None
    ) -> "Decoration":
        return cls("line", pos, pos, dict(attributes or {}), css_class)

    @classmethod
    def widget_at(cls, pos: int, widget: LineNumberWidget) -> "Decoration":
        return cls("widget", pos, pos, widget=widget)

    def to_data(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind, "from": self.from_, "to": self.to}
        if self.attributes:
            data["attributes"] = dict(self.attributes)
        if self.css_class:
            data["class"] = self.css_class
        if self.widget is not None:
            data["widget"] = {"line_number": self.widget.number, "html": self.widget.to_html()}
        return data


class DecorationSet(Sequence[Decoration]):
    """Immutable decorations ordered by start position."""

    def __init__(self, decorations: Sequence[Decoration] = ()):
        self._items = tuple(decorations)

    @classmethod
    def empty(cls) -> "DecorationSet":
        return cls()

    def __getitem__(self, i):
        return self._items[i]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Decoration]:
        return iter(self._items)


class DecorationSetBuilder:
    def __init__(self) -> None:
        self._items: list[Decoration] = []

    def add(self, from_: int, to: int, decoration: Decoration) -> None:
        """
        Raises:
            ValueError: ranges not added in ascending ``from_`` order
        """
        if self._items and from_ < self._items[-1].from_:
            raise ValueError("Ranges must be added sorted by `from` position")
        if (from_, to) != (decoration.from_, decoration.to):
            decoration = replace(decoration, from_=from_, to=to)
        self._items.append(decoration)

    def finish(self) -> DecorationSet:
        return DecorationSet(self._items)
