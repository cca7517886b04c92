"""
Core module for application configuration and utilities.

Note: the session engine is not imported at package level to avoid circular
imports with app.models (which imports datetime_utils from app.core).
Import it directly: from app.core.session import ...
"""
from .config import settings

__all__ = ["settings"]
