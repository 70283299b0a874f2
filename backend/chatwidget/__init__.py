"""Chat widget session core and proxy relay."""

__version__ = "0.1.0"
