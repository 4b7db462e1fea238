"""Version information for marker-lock."""

__version__ = "1.0.0"
