"""Domain layer: models, enums, limits."""
