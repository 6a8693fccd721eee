"""
Crypto Provider contract — capability-tagged hashing and reversible encryption.

A provider turns ``secret + salt`` into a storable digest. Hash providers are
one-way; reversible providers can also recover ``secret + salt`` from the
digest. Verification dispatches on the declared ``capability``.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional


class Capability(str, Enum):
    HASH = "hash"
    REVERSIBLE = "reversible"


class CryptoProvider(ABC):
    """Base class for every crypto provider."""

    name: str = "base"
    capability: Capability

    @abstractmethod
    def digest(self, secret: str, salt: str) -> str:
        """Return the deterministic digest of ``secret + salt``.

        Raises:
            ProviderError: On provider-internal failure only.
        """

    @property
    def reversible(self) -> bool:
        return self.capability is Capability.REVERSIBLE

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} capability={self.capability.value}>"


class HashProvider(CryptoProvider):
    """One-way provider: digests can only be compared, never reversed."""

    capability = Capability.HASH


class ReversibleProvider(CryptoProvider):
    """Encryption provider: digests can be reversed to ``secret + salt``."""

    capability = Capability.REVERSIBLE

    @abstractmethod
    def reverse(self, digest: str) -> str:
        """Recover ``secret + salt`` from a digest.

        Raises:
            ProviderError: If the digest cannot be decrypted with this provider.
        """


def verify(
    provider: CryptoProvider,
    attempted: Optional[str],
    salt: Optional[str],
    digest: Optional[str],
) -> bool:
    """Check an attempted secret against a stored salt and digest.

    A digest equal to the attempted secret is accepted verbatim, so rows
    holding legacy plaintext credentials keep working until the next change.

    Raises:
        ProviderError: If the provider fails; never reported as a mismatch.
    """
    if not attempted or not digest or not salt:
        return False
    if attempted == digest:
        return True
    if provider.capability is Capability.REVERSIBLE:
        return provider.reverse(digest) == attempted + salt
    return provider.digest(attempted, salt) == digest
