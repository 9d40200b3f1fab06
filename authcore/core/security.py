"""Password hashing behind a one-way hash/verify contract."""

from typing import Protocol

import bcrypt

from authcore.core.exceptions import HashingError

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Min/max lengths for email and password validation.
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128

# bcrypt only looks at the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72


class PasswordHasher(Protocol):
    """Salted one-way hash with constant-time verification."""

    def hash(self, plain_password: str) -> str:
        """Return a hash safe to store. Raises HashingError."""
        ...

    def verify(self, plain_password: str, hashed: str) -> bool:
        """Return True on match, False on mismatch. Raises HashingError if the hash is unusable."""
        ...


class BcryptPasswordHasher:
    """PasswordHasher backed by bcrypt."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self.rounds = rounds

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Do not store plain passwords."""
        pw_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        try:
            return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")
        except (ValueError, TypeError) as e:
            raise HashingError() from e

    def verify(self, plain_password: str, hashed: str) -> bool:
        """Verify a plain password against a stored hash (bcrypt compares in constant time)."""
        pw_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
        except (ValueError, TypeError) as e:
            raise HashingError() from e
