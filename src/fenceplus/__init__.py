"""fenceplus: fence-line directives for titled, numbered and highlighted code blocks."""

__version__ = "0.3.0"
