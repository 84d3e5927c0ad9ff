"""Auto-redirect maintenance for content slugs."""

__version__ = "0.1.0"
