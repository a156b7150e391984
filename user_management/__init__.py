"""Mini user management system: REST API and Python client."""

__version__ = "1.0.0"
