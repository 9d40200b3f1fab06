"""
Create a user (e.g. first admin). Run from project root:
  python -m authcore.scripts.create_user EMAIL PASSWORD [role]
Example:
  python -m authcore.scripts.create_user admin@example.com your-secure-password Admin
"""
import argparse
import asyncio
import sys

from authcore.core.config import settings
from authcore.core.database import create_engine_for, create_session_factory
from authcore.core.exceptions import AuthCoreError
from authcore.core.roles import Role
from authcore.core.secrets import SecretProvider
from authcore.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, BcryptPasswordHasher
from authcore.core.tokens import TokenCodec
from authcore.services.credential_store import SqlCredentialStore
from authcore.services.credentials import CredentialService


async def _create(email: str, password: str, role: str) -> str:
    engine = create_engine_for(settings.DATABASE_URL)
    try:
        service = CredentialService(
            SqlCredentialStore(create_session_factory(engine)),
            TokenCodec(SecretProvider(settings), algorithm=settings.JWT_ALGORITHM),
            BcryptPasswordHasher(rounds=settings.BCRYPT_ROUNDS),
        )
        result = await service.signup(email, password, role)
        return result.uid
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an authcore user.")
    parser.add_argument("email", help=f"Email (1-{EMAIL_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=Role.USER.value, choices=[r.value for r in Role])
    args = parser.parse_args()

    # Same rule as the API: the email is stored exactly as given.
    email = args.email
    if not email or len(email) > EMAIL_MAX_LEN:
        print("Invalid email.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    try:
        uid = asyncio.run(_create(email, args.password, args.role))
    except AuthCoreError as e:
        print(f"Could not create user '{email}': {e.message}", file=sys.stderr)
        return 1
    print(f"Created user '{email}' ({uid}) with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
