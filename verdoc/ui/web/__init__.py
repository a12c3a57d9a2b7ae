"""Preview web server."""
