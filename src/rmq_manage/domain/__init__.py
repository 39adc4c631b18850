"""Domain layer: resource models, system identity and membership rules."""
