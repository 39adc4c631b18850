"""Domain base types."""
