"""Base handler classes."""
