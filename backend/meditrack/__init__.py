"""Local-first patient registry: embedded SQL engine with an in-memory fallback."""

__version__ = "1.0.0"
