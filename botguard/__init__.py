"""User-agent based bot detection."""

__version__ = "0.1.0"
