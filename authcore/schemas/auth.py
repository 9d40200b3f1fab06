"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, Field

from authcore.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN


class SignupRequest(BaseModel):
    """New account. role defaults to User; unknown roles are stored as User."""

    # Stored and matched exactly as sent; scripts/create_user.py applies the same rule.
    email: str = Field(..., min_length=1, max_length=EMAIL_MAX_LEN, description="Email (unique)")
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )
    role: str | None = Field(default=None, max_length=32, description="User or Admin")


class SignupResponse(BaseModel):
    """Creation confirmation."""

    message: str = Field(..., description="Human-readable confirmation")
    uid: str = Field(..., description="Public id of the new user")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=EMAIL_MAX_LEN, description="Email")
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password")


class LoginResponse(BaseModel):
    """Tokens returned after successful login."""

    token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class RefreshRequest(BaseModel):
    # Empty or unknown tokens are answered by the refresh flow (404), not by validation.
    refresh_token: str = Field(..., description="Current refresh token")


class RefreshResponse(BaseModel):
    """New token pair; the presented refresh token is no longer valid."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class ErrorResponse(BaseModel):
    """Body of every error response."""

    message: str
    status: str
    code: str
