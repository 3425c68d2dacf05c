"""SeriesKeeper: character knowledge tracking for multi-book fiction series."""

__version__ = "1.0.0"
