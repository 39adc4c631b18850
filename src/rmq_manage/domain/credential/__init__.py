"""Credential domain."""
