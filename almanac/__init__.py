"""almanac — identity, metadata and thumbnail backend for a desktop file browser."""

__version__ = "0.1.0"
