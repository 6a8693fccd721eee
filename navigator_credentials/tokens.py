"""
Token Generator — correlation tokens, salts, and reset secrets.

Tokens are always SHA-512 based, independent of the configured crypto
provider, so token freshness never depends on provider configuration.
"""
import time
import string
import secrets

from .providers.sha512 import sha512_hex

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
RESET_SECRET_LENGTH = 10
_RANDOM_DRAWS = 10


def generate_token() -> str:
    """Return a practically unique opaque token (128 hex chars).

    Mixes the current time with several independent random draws and
    hashes the result.
    """
    seed = repr(time.time()) + "".join(
        str(secrets.randbits(64)) for _ in range(_RANDOM_DRAWS)
    )
    return sha512_hex(seed)


def generate_reset_secret(length: int = RESET_SECRET_LENGTH) -> str:
    """Return a random alphanumeric secret of ``length`` characters.

    Each position is drawn uniformly over the whole alphabet.
    """
    return "".join(
        ALPHABET[secrets.randbelow(len(ALPHABET))] for _ in range(length)
    )
