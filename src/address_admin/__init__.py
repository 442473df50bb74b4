"""Address Admin — administrative API for managing address contact records."""

__version__ = "0.1.0"
