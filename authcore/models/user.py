"""ORM model for application users (credentials, role and refresh session)."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from authcore.models.base import Base


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'User' or 'Admin'
    refresh_token: the single active refresh token, NULL until first login.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(36), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="User")
    refresh_token = Column(Text, nullable=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
