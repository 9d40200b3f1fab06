"""SQLAlchemy ORM models."""

from authcore.models.base import Base
from authcore.models.user import User

__all__ = ["Base", "User"]
