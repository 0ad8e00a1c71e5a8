"""Terminal rendering of build stages and results, using Rich."""

from seaforge.monitor.renderer import BuildRenderer, format_size

__all__ = ["BuildRenderer", "format_size"]
