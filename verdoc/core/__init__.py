"""Core pipeline: models, config, services."""
