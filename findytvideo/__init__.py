"""Terminal client for searching YouTube videos and playing them in an external player."""

__version__ = "0.1.0"
