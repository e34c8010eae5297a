"""
Core module for application configuration and utilities.

Note: auth and security modules are not imported at package level to avoid
circular imports with theory_backend.models.
Import them directly: from theory_backend.core.auth import ...
"""
from .config import settings

__all__ = ["settings"]
