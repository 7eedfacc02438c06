"""Keep overlay row heights in step with soft-wrapped source lines."""

import logging
from dataclasses import dataclass

from lxml import html as lxml_html
from lxml.html import HtmlElement

from ..core.model import CodeBlockOccurrence, LocatedBlock
from ..core.ports import Cancellable, Scheduler, TextMeasurer
from .dom import role_children, set_style
from .overlay import HIGHLIGHT_WRAP_CLASS, LINENUM_WRAP_CLASS

logger = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 100


@dataclass
class TrackedBlock:
    pre: HtmlElement
    occurrence: CodeBlockOccurrence
    located: LocatedBlock


def _column_rows(pre: HtmlElement, role: str) -> list[HtmlElement]:
    columns = role_children(pre, role)
    return list(columns[0]) if columns else []


def make_probe(code: HtmlElement | None, text: str) -> HtmlElement:
    """Detached element styled like the code element, holding one line."""
    probe = lxml_html.Element("div")
    if code is not None:
        if code.get("class"):
            probe.set("class", code.get("class"))
        if code.get("style"):
            probe.set("style", code.get("style"))
    set_style(probe, "white-space", "pre-wrap")
    probe.text = text
    return probe


class HeightReconciler:
    """
    Debounced re-measurement of tracked blocks.

    ``schedule()`` cancels any pass still pending, so a burst of triggers
    (resize events, repeated post-processing) costs one pass.
    """

    def __init__(self, scheduler: Scheduler, measurer: TextMeasurer, delay_ms: int = DEFAULT_DELAY_MS):
        self.scheduler = scheduler
        self.measurer = measurer
        self.delay_ms = delay_ms
        self._pending: Cancellable | None = None
        self._tracked: dict[HtmlElement, TrackedBlock] = {}

    @property
    def tracked(self) -> list[TrackedBlock]:
        return list(self._tracked.values())

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def track(self, pre: HtmlElement, occurrence: CodeBlockOccurrence, located: LocatedBlock) -> None:
        self._tracked[pre] = TrackedBlock(pre, occurrence, located)

    def untrack(self, pre: HtmlElement) -> None:
        self._tracked.pop(pre, None)

    def schedule(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self.scheduler.call_later(self.delay_ms / 1000, self._fire)

    def on_resize(self) -> None:
        self.schedule()

    def flush(self) -> int:
        """Cancel the pending pass and run one now."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        return self.run()

    def _fire(self) -> None:
        self._pending = None
        self.run()

    def run(self) -> int:
        """Measure every tracked block; returns the number of lines stamped."""
        stamped = 0
        for block in list(self._tracked.values()):
            try:
                stamped += self._reconcile(block)
            except Exception:
                logger.exception("Height reconciliation failed for a %s block", block.occurrence.language_name)
        return stamped

    def _reconcile(self, block: TrackedBlock) -> int:
        lines = block.located.lines
        if lines is None:
            return 0
        numbers = _column_rows(block.pre, LINENUM_WRAP_CLASS)
        highlights = _column_rows(block.pre, HIGHLIGHT_WRAP_CLASS)
        if not numbers and not highlights:
            return 0

        code = block.pre.find("code")
        first = block.located.extent.start_line + 1
        stamped = 0
        for i in range(block.occurrence.line_count):
            if first + i >= lines.line_count:
                break
            probe = make_probe(code, lines.line(first + i))
            height = f"{self.measurer.measure(probe):g}px"
            if i < len(numbers):
                set_style(numbers[i], "height", height)
            if i < len(highlights):
                set_style(highlights[i], "height", height)
            stamped += 1
        return stamped
