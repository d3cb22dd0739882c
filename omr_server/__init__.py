"""OMR answer-sheet scoring server."""

__version__ = "1.0.0"
