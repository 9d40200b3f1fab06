"""Signed session tokens: encode claims with the shared secret, decode and validate them."""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from pydantic import BaseModel, ConfigDict, Field

from authcore.core.exceptions import TokenInvalidOrExpiredError
from authcore.core.roles import REFRESH_ROLE_CLAIM, Role, TokenKind
from authcore.core.secrets import SecretProvider

ACCESS_TOKEN_TTL = timedelta(hours=1)
REFRESH_TOKEN_TTL = timedelta(days=14)

# Claims PyJWT must find before a token is accepted at all.
_REQUIRED_CLAIMS = ["sub", "exp"]


class Claims(BaseModel):
    """Decoded token payload. role is USER for refresh tokens."""

    model_config = ConfigDict(frozen=True)

    subject: str = Field(..., description="User uid (sub)")
    role: Role = Field(..., description="Authorization role")
    kind: TokenKind = Field(..., description="Access or refresh token")
    expires_at: datetime = Field(..., description="Absolute expiry (exp)")
    issued_at: datetime | None = Field(default=None, description="Issue time (iat)")
    token_id: str | None = Field(default=None, description="Unique token id (jti)")


def _role_claim(role_or_kind: Role | TokenKind) -> str:
    if isinstance(role_or_kind, Role):
        return role_or_kind.value
    if role_or_kind is TokenKind.REFRESH:
        return REFRESH_ROLE_CLAIM
    raise ValueError("access tokens are encoded with the holder's Role")


class TokenCodec:
    """
    HMAC-signed JWT codec bound to a SecretProvider.

    Pure with respect to (secret, token, current time): no I/O after the
    secret is loaded, no shared mutable state, safe to call concurrently.
    """

    def __init__(
        self,
        secrets: SecretProvider,
        algorithm: str = "HS512",
        access_ttl: timedelta = ACCESS_TOKEN_TTL,
        refresh_ttl: timedelta = REFRESH_TOKEN_TTL,
        strict_roles: bool = False,
    ) -> None:
        self._secrets = secrets
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._strict_roles = strict_roles

    def encode(self, subject: str, role_or_kind: Role | TokenKind, ttl: timedelta) -> str:
        """
        Sign claims {sub, role, exp, iat, jti} with expiry now + ttl.
        Raises SecretUnavailableError if the key cannot be loaded.
        """
        key = self._secrets.get().key
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": subject,
            "role": _role_claim(role_or_kind),
            "exp": int((now + ttl).timestamp()),
            "iat": int(now.timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, key, algorithm=self._algorithm)

    def decode(self, token: str) -> Claims:
        """
        Verify signature and expiry; return the claims.
        Raises TokenInvalidOrExpiredError on any failure.
        """
        key = self._secrets.get().key
        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[self._algorithm],
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.PyJWTError as e:
            raise TokenInvalidOrExpiredError() from e

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub:
            raise TokenInvalidOrExpiredError("Invalid token payload")

        role_claim = payload.get("role")
        if role_claim == REFRESH_ROLE_CLAIM:
            role, kind = Role.USER, TokenKind.REFRESH
        else:
            if self._strict_roles and not Role.is_known(role_claim):
                raise TokenInvalidOrExpiredError("Unknown role claim")
            role, kind = Role.parse(role_claim), TokenKind.ACCESS

        iat = payload.get("iat")
        return Claims(
            subject=sub,
            role=role,
            kind=kind,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
            issued_at=datetime.fromtimestamp(iat, tz=UTC) if isinstance(iat, (int, float)) else None,
            token_id=payload.get("jti"),
        )

    def issue_access_token(self, uid: str, role: Role) -> str:
        return self.encode(uid, role, self.access_ttl)

    def issue_refresh_token(self, uid: str) -> str:
        return self.encode(uid, TokenKind.REFRESH, self.refresh_ttl)
