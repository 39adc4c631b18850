"""Broker resource domain."""
