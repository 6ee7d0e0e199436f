"""Infrastructure layer: dependency injection and logging."""
