"""API route handlers."""

from api.routes import health, manifest, archives

__all__ = ["health", "manifest", "archives"]
