"""Storyboard maker: turn a narrative script into illustrated scenes."""

__version__ = "0.1.0"
