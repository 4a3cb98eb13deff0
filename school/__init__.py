"""ClassNama school management API."""

__version__ = "0.1.0"
