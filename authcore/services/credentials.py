"""Credential flows: signup, login and refresh-token rotation."""

import asyncio
import logging
import uuid

from authcore.core.exceptions import (
    CredentialsIncorrectError,
    TokenInvalidOrExpiredError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from authcore.core.roles import Role, TokenKind
from authcore.core.security import PasswordHasher
from authcore.core.tokens import TokenCodec
from authcore.models import User
from authcore.schemas.auth import LoginResponse, RefreshResponse, SignupResponse
from authcore.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class CredentialService:
    """
    Orchestrates hashing, token issuance and store mutation.

    Holds no per-request state; one instance serves all concurrent requests.
    Errors propagate to the caller unchanged and are never retried.
    """

    def __init__(
        self,
        store: CredentialStore,
        codec: TokenCodec,
        hasher: PasswordHasher,
        issue_refresh_on_signup: bool = False,
    ) -> None:
        self._store = store
        self._codec = codec
        self._hasher = hasher
        self._issue_refresh_on_signup = issue_refresh_on_signup

    async def signup(self, email: str, password: str, role: str | None = None) -> SignupResponse:
        """
        Create a user. Raises UserAlreadyExistsError, HashingError or StorePersistenceError.

        The lookup below only gives a friendly early answer; the unique
        constraint in the store is what rejects a concurrent duplicate.
        """
        if await self._store.get_by_email(email) is not None:
            raise UserAlreadyExistsError()

        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        uid = str(uuid.uuid4())
        user = User(
            uid=uid,
            email=email,
            password_hash=password_hash,
            role=Role.parse(role).value,
            refresh_token=self._codec.issue_refresh_token(uid) if self._issue_refresh_on_signup else None,
        )
        await self._store.insert(user)
        logger.info("User created", extra={"uid": uid, "role": user.role})
        return SignupResponse(message=f"User '{uid}' created successfully!", uid=uid)

    async def login(self, email: str, password: str) -> LoginResponse:
        """
        Verify credentials and start a new refresh session.

        The new refresh token replaces any previous one, so at most one
        refresh session is active per user.
        """
        user = await self._store.get_by_email(email)
        if user is None:
            raise UserNotFoundError()

        matches = await asyncio.to_thread(self._hasher.verify, password, user.password_hash)
        if not matches:
            logger.warning("Login rejected: wrong password", extra={"uid": user.uid})
            raise CredentialsIncorrectError()

        access_token = self._codec.issue_access_token(user.uid, Role.parse(user.role))
        refresh_token = self._codec.issue_refresh_token(user.uid)
        await self._store.set_refresh_token(user.id, refresh_token)
        logger.info("Login succeeded", extra={"uid": user.uid})
        return LoginResponse(token=access_token, refresh_token=refresh_token)

    async def refresh(self, presented: str) -> RefreshResponse:
        """
        Exchange the current refresh token for a new access/refresh pair.

        A token that is validly signed but no longer the stored one (rotated
        by an earlier refresh or login, or by a concurrent refresh that won
        the swap) fails with UserNotFoundError.
        """
        user = await self._store.get_by_refresh_token(presented)
        if user is None:
            logger.warning("Refresh rejected: token is not the current session token")
            raise UserNotFoundError()

        claims = self._codec.decode(presented)
        if claims.kind is not TokenKind.REFRESH or claims.subject != user.uid:
            raise TokenInvalidOrExpiredError()

        access_token = self._codec.issue_access_token(user.uid, Role.parse(user.role))
        refresh_token = self._codec.issue_refresh_token(user.uid)
        if not await self._store.rotate_refresh_token(user.id, presented, refresh_token):
            logger.warning("Refresh rejected: lost concurrent rotation", extra={"uid": user.uid})
            raise UserNotFoundError()
        logger.info("Refresh token rotated", extra={"uid": user.uid})
        return RefreshResponse(access_token=access_token, refresh_token=refresh_token)
