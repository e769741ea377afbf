"""Task Tracker: a local task store with filtering, sharing and stats."""

__version__ = "0.1.0"
