"""Reading-view overlays and height reconciliation."""

from .processor import ReadingViewProcessor, RenderResult, render_document, render_page
from .reconcile import HeightReconciler

__all__ = [
    "ReadingViewProcessor",
    "RenderResult",
    "render_document",
    "render_page",
    "HeightReconciler",
]
