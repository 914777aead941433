"""Team fixtures cache and form service."""

__version__ = "1.0.0"
