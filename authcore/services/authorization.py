"""Bearer-token guard for protected routes."""

from collections.abc import Mapping

from authcore.core.exceptions import (
    AuthHeaderMalformedError,
    AuthHeaderMissingError,
    InsufficientRoleError,
)
from authcore.core.roles import Role
from authcore.core.tokens import TokenCodec

BEARER = "Bearer "
AUTHORIZATION = "authorization"


def _find_header(headers: Mapping[str, str | bytes], name: str) -> str | bytes | None:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def token_from_headers(headers: Mapping[str, str | bytes]) -> str:
    """Return the token from 'Authorization: Bearer <token>'."""
    value = _find_header(headers, AUTHORIZATION)
    if value is None:
        raise AuthHeaderMissingError()
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise AuthHeaderMalformedError() from e
    if not value.startswith(BEARER):
        raise AuthHeaderMalformedError()
    return value[len(BEARER):]


def authorize(headers: Mapping[str, str | bytes], required_role: Role, codec: TokenCodec) -> str:
    """
    Validate the request's bearer token and return its subject (uid).

    An Admin requirement needs a token whose role is exactly Admin. A User
    requirement accepts any token that decodes, Admin tokens included.
    """
    claims = codec.decode(token_from_headers(headers))
    if required_role is Role.ADMIN and claims.role is not Role.ADMIN:
        raise InsufficientRoleError()
    return claims.subject
