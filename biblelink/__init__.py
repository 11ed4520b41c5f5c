"""BibleLink: scripture reference parsing and verse formatting."""

__version__ = "0.1.0"
