"""Template loading infrastructure."""
