"""Domain layer: entities and lifecycle services."""
