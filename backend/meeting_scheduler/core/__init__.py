"""Core package: configuration, errors, cache and logging."""
