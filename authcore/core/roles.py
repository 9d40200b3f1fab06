"""Authorization roles and token purposes."""

from enum import Enum

# Reserved value of the "role" claim that marks a refresh token on the wire.
REFRESH_ROLE_CLAIM = "Refresh"


class Role(str, Enum):
    """Closed set of authorization roles. Values are the wire form of the role claim."""

    USER = "User"
    ADMIN = "Admin"

    @classmethod
    def parse(cls, value: str | None) -> "Role":
        """Return the matching role; unknown or missing values degrade to USER."""
        if value == cls.ADMIN.value:
            return cls.ADMIN
        return cls.USER

    @classmethod
    def is_known(cls, value: str | None) -> bool:
        return value in (cls.USER.value, cls.ADMIN.value)


class TokenKind(str, Enum):
    """What a token may be used for, independent of the holder's role."""

    ACCESS = "access"
    REFRESH = "refresh"
