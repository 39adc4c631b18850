"""Template domain."""
