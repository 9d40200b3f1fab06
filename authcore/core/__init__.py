"""Core app configuration, secrets, tokens and database."""

from authcore.core.config import get_settings, settings
from authcore.core.database import create_engine_for, create_session_factory

__all__ = ["get_settings", "settings", "create_engine_for", "create_session_factory"]
