"""Managed system domain."""
