"""Process-wide signing key: loaded once, read-only afterwards."""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from authcore.core.exceptions import SecretUnavailableError

if TYPE_CHECKING:
    from authcore.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SigningSecret:
    """HMAC key shared by every encode/decode. repr never shows the key."""

    key: bytes
    source: str

    def __repr__(self) -> str:
        return f"SigningSecret(source={self.source!r})"


class SecretProvider:
    """
    Loads the signing key from JWT_SECRET or, if unset, from JWT_SECRET_FILE.

    The first successful load is cached and returned to every caller; a failed
    load raises SecretUnavailableError and is retried on the next call.
    """

    def __init__(self, settings: "Settings") -> None:
        self._settings = settings
        self._secret: SigningSecret | None = None
        self._lock = threading.Lock()

    def get(self) -> SigningSecret:
        secret = self._secret
        if secret is not None:
            return secret
        with self._lock:
            if self._secret is None:
                self._secret = self._load()
            return self._secret

    def _load(self) -> SigningSecret:
        if self._settings.JWT_SECRET is not None:
            raw = self._settings.JWT_SECRET.get_secret_value()
            source = "env:JWT_SECRET"
        else:
            path = Path(self._settings.JWT_SECRET_FILE)
            try:
                raw = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.error("Signing key could not be read from %s: %s", path, e)
                raise SecretUnavailableError() from e
            source = f"file:{path}"
        # Trailing newlines from editors are not part of the key.
        raw = raw.strip()
        if not raw:
            logger.error("Signing key from %s is empty", source)
            raise SecretUnavailableError()
        logger.info("Signing key loaded", extra={"secret_source": source})
        return SigningSecret(key=raw.encode("utf-8"), source=source)
