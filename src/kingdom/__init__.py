"""Battle-resolution and resource-economy engine for a kingdom management game."""

__version__ = "0.1.0"
