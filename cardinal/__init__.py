"""Attack-with-defence competition core: configuration, game clock, SQLite stores, JSON responses and a live broadcast hub."""

__version__ = "0.1.0"