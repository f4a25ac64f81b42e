"""Path-addressed client for the Box Content API."""

__version__ = "0.1.0"
