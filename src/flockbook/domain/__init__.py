"""Domain layer: entities, pure aggregations and services."""
