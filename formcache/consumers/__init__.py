"""Consumers built on the core interfaces."""
