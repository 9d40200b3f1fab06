"""Signup, login and refresh endpoints plus the role-guard dependency."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from authcore.core.roles import Role
from authcore.core.tokens import TokenCodec
from authcore.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    SignupRequest,
    SignupResponse,
)
from authcore.services.authorization import authorize
from authcore.services.credentials import CredentialService

router = APIRouter()


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credential_service


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def require_role(role: Role) -> Callable[..., str]:
    """
    Dependency factory: validate the bearer token and return the caller's uid.

    Headers are read as raw bytes so a non-UTF-8 Authorization value is
    reported as malformed instead of being decoded as latin-1.
    """

    def dependency(
        request: Request,
        codec: Annotated[TokenCodec, Depends(get_token_codec)],
    ) -> str:
        headers = {key.decode("latin-1"): value for key, value in request.headers.raw}
        return authorize(headers, role, codec)

    return dependency


@router.post("/signup", response_model=SignupResponse)
async def signup(
    body: SignupRequest,
    service: Annotated[CredentialService, Depends(get_credential_service)],
) -> SignupResponse:
    """Create an account. role is optional and defaults to User."""
    return await service.signup(body.email, body.password, body.role)


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    service: Annotated[CredentialService, Depends(get_credential_service)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns an access token and a refresh token.
    Include the access token in the Authorization header as: Bearer <token>
    """
    return await service.login(body.email, body.password)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    body: RefreshRequest,
    service: Annotated[CredentialService, Depends(get_credential_service)],
) -> RefreshResponse:
    """Rotate the refresh token. The presented token cannot be used again."""
    return await service.refresh(body.refresh_token)
