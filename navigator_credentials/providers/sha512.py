"""
One-way providers built on the ``cryptography`` hash primitives.
"""

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..errors import ConfigurationError, ProviderError
from .base import HashProvider


def sha512_hex(data: str) -> str:
    """Hex encoded SHA-512 of a UTF-8 string."""
    h = hashes.Hash(hashes.SHA512())
    h.update(data.encode("utf-8"))
    return h.finalize().hex()


class Sha512Provider(HashProvider):
    """SHA-512 of ``secret + salt``, hex encoded. The default provider."""

    name = "sha512"

    def digest(self, secret: str, salt: str) -> str:
        try:
            return sha512_hex(secret + salt)
        except Exception as err:
            raise ProviderError(f"sha512 digest failed: {err}") from err


class Pbkdf2Provider(HashProvider):
    """PBKDF2-HMAC-SHA512 key stretching, using the stored salt as KDF salt."""

    name = "pbkdf2"

    def __init__(self, iterations: int = 100_000, length: int = 64):
        if iterations < 1:
            raise ConfigurationError("pbkdf2 iterations must be positive")
        self.iterations = iterations
        self.length = length

    def digest(self, secret: str, salt: str) -> str:
        # a PBKDF2HMAC instance can derive only once
        try:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA512(),
                length=self.length,
                salt=salt.encode("utf-8"),
                iterations=self.iterations,
            )
            return kdf.derive(secret.encode("utf-8")).hex()
        except Exception as err:
            raise ProviderError(f"pbkdf2 digest failed: {err}") from err
