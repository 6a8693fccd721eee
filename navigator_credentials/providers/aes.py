"""
Reversible provider — deterministic AES-SIV encryption of ``secret + salt``.

The working key is derived from the configured key material with
HKDF-SHA256 and a fixed context, so the raw key is never used directly.
AES-SIV is deterministic: the same secret and salt always encrypt to the
same digest, which keeps digests comparable like a hash.

Security Note:
    Never log plaintext, digests, or key material.
"""
import base64
import binascii

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESSIV
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ..errors import ConfigurationError, ProviderError
from .base import ReversibleProvider

KEY_CONTEXT = "navigator-credentials-aes-siv"


def derive_key(seed: bytes, context: str, length: int) -> bytes:
    """Derive an encryption key of ``length`` bytes using HKDF-SHA256.

    Args:
        seed: Input key material.
        context: Context string for domain separation.
        length: Size of the derived key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=None,  # deterministic derivation
        info=context.encode("utf-8"),
    )
    return hkdf.derive(seed)


class AesSivProvider(ReversibleProvider):
    """AES-SIV provider; digests are url-safe base64 ciphertexts."""

    name = "aes-siv"

    def __init__(self, key: bytes):
        if len(key) not in (32, 48, 64):
            raise ConfigurationError(
                f"aes-siv key must be 32, 48 or 64 bytes, got {len(key)}"
            )
        self._cipher = AESSIV(derive_key(key, KEY_CONTEXT, len(key)))

    def digest(self, secret: str, salt: str) -> str:
        try:
            ct = self._cipher.encrypt((secret + salt).encode("utf-8"), None)
        except Exception as err:
            raise ProviderError(f"aes-siv encryption failed: {err}") from err
        return base64.urlsafe_b64encode(ct).decode("ascii")

    def reverse(self, digest: str) -> str:
        try:
            ct = base64.urlsafe_b64decode(digest.encode("ascii"))
            return self._cipher.decrypt(ct, None).decode("utf-8")
        except InvalidTag as err:
            raise ProviderError(
                "aes-siv digest was not produced with the configured key"
            ) from err
        except (binascii.Error, ValueError) as err:
            raise ProviderError(f"aes-siv digest is malformed: {err}") from err
