"""Build pipeline services."""
