"""
Domain errors raised by the credential and session core.

Each error carries the HTTP status it is rendered with; the transport layer
registers one handler for AuthCoreError and never inspects subclasses.
"""


class AuthCoreError(Exception):
    """Base class for all credential/session errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthHeaderMissingError(AuthCoreError):
    """No Authorization header on a protected request."""

    status_code = 401
    code = "AUTH_HEADER_MISSING"
    default_message = "no auth header"


class AuthHeaderMalformedError(AuthCoreError):
    """Authorization header is not UTF-8 or lacks the Bearer prefix."""

    status_code = 401
    code = "AUTH_HEADER_MALFORMED"
    default_message = "invalid auth header"


class TokenInvalidOrExpiredError(AuthCoreError):
    """Bad signature, malformed token, or lapsed expiry."""

    status_code = 401
    code = "TOKEN_INVALID"
    default_message = "jwt token not valid"


class InsufficientRoleError(AuthCoreError):
    """Token is valid but its role does not satisfy the route."""

    status_code = 401
    code = "INSUFFICIENT_ROLE"
    default_message = "no permission"


class CredentialsIncorrectError(AuthCoreError):
    status_code = 403
    code = "WRONG_CREDENTIALS"
    default_message = "wrong credentials"


class UserNotFoundError(AuthCoreError):
    """
    No matching user record.

    Also raised by refresh when the presented token is no longer the stored
    one, whether it was rotated earlier or lost a concurrent rotation.
    """

    status_code = 404
    code = "USER_NOT_FOUND"
    default_message = "Could not find user"


class UserAlreadyExistsError(AuthCoreError):
    status_code = 400
    code = "USER_ALREADY_EXISTS"
    default_message = "User already exists"


class HashingError(AuthCoreError):
    status_code = 500
    code = "HASHING_FAILURE"
    default_message = "Could not hash password"


class StorePersistenceError(AuthCoreError):
    status_code = 500
    code = "STORE_FAILURE"
    default_message = "Insertion in DB failed"


class SecretUnavailableError(AuthCoreError):
    """Signing key could not be loaded. Fatal at startup, 500 during a request."""

    status_code = 500
    code = "SECRET_UNAVAILABLE"
    default_message = "key not found"
