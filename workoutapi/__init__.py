"""JSON HTTP API over SQLite for users, bearer tokens and workout tracking."""

__version__ = "0.1.0"
__all__ = ["__version__"]