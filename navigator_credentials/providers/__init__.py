"""Crypto providers for credential digests."""
from ..config import CredentialsConfig
from ..errors import ConfigurationError
from .base import (
    Capability,
    CryptoProvider,
    HashProvider,
    ReversibleProvider,
    verify,
)
from .sha512 import Sha512Provider, Pbkdf2Provider, sha512_hex
from .aes import AesSivProvider


def get_provider(config: CredentialsConfig) -> CryptoProvider:
    """Build the provider selected by ``config.crypto_provider``."""
    name = config.crypto_provider
    if name == "sha512":
        return Sha512Provider()
    if name == "pbkdf2":
        return Pbkdf2Provider(iterations=config.pbkdf2_iterations)
    if name == "aes-siv":
        if config.encryption_key is None:
            raise ConfigurationError("aes-siv provider requires an encryption key")
        return AesSivProvider(config.encryption_key)
    raise ConfigurationError(f"Unknown crypto provider: {name}")


__all__ = [
    "Capability",
    "CryptoProvider",
    "HashProvider",
    "ReversibleProvider",
    "Sha512Provider",
    "Pbkdf2Provider",
    "AesSivProvider",
    "get_provider",
    "sha512_hex",
    "verify",
]
