"""Live-preview decorations for fenced code blocks."""

from .plugin import LivePreviewPlugin, create_live_plugin

__all__ = [
    "LivePreviewPlugin",
    "create_live_plugin",
]
