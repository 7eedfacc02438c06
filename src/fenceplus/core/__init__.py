"""Host-independent model, directive grammar and block location."""

from .directives import expand_line_ranges, parse_fence_line
from .model import AnnotationDirectives, CodeBlockOccurrence, SourceExtent
from .settings import Settings

__all__ = [
    "expand_line_ranges",
    "parse_fence_line",
    "AnnotationDirectives",
    "CodeBlockOccurrence",
    "SourceExtent",
    "Settings",
]
