import math

from lxml.html import HtmlElement

from ..core.ports import TextMeasurer
from ..reading.dom import get_style

# white-space values that never soft-wrap
_NO_WRAP = {"pre", "nowrap"}


class MonospaceMeasurer(TextMeasurer):
    """
    Height of a soft-wrapped monospace line: one row per ``chars_per_row``
    characters (tabs expanded), never less than one row. A probe styled not
    to wrap is always one row.
    """

    def __init__(self, line_height_px: float = 20.0, chars_per_row: int = 80, tab_size: int = 4):
        self.line_height_px = line_height_px
        self.chars_per_row = max(1, chars_per_row)
        self.tab_size = tab_size

    def measure(self, probe: HtmlElement) -> float:
        if (get_style(probe, "white-space") or "").split(" ")[0] in _NO_WRAP:
            return self.line_height_px
        text = (probe.text_content() or "").expandtabs(self.tab_size)
        rows = max(1, math.ceil(len(text) / self.chars_per_row))
        return rows * self.line_height_px
