"""Commerce-to-CMS content sync."""

__version__ = "1.0.0"
