"""AI-assisted photo search for event galleries."""

__version__ = "0.3.0"
