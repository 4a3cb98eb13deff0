"""Service layer for the school API."""
