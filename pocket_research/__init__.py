"""Research link collector: Pocket and local saves in one SQLite database."""

__version__ = "0.1.0"
