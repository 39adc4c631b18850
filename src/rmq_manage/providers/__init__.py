"""Broker providers."""
