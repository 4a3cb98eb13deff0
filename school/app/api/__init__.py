"""API endpoints package, mounted under /v1."""
