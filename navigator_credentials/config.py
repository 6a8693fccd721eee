"""
Credentials Configuration — provider selection, session slots and field bindings.

Reads settings from environment variables:
    CREDENTIALS_CRYPTO_PROVIDER = sha512 | pbkdf2 | aes-siv
    CREDENTIALS_SESSION_IDS = comma-separated slot ids (empty item = default slot)
    CREDENTIALS_ENCRYPTION_KEY = <base64-encoded 32/48/64-byte key>
    CREDENTIALS_PBKDF2_ITERATIONS = <integer>

Security Note:
    Never log key material. Only log provider names and slot ids.
"""
import os
import base64
import secrets
import logging
from typing import Any, Optional

from pydantic import (
    BaseModel,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from .errors import ConfigurationError

logger = logging.getLogger("navigator.credentials")

PROVIDERS = ("sha512", "pbkdf2", "aes-siv")
REVERSIBLE_PROVIDERS = ("aes-siv",)
KEY_LENGTHS = (32, 48, 64)


def load_encryption_key(name: str = "CREDENTIALS_ENCRYPTION_KEY") -> Optional[bytes]:
    """Load the reversible-provider key from the environment.

    Returns:
        Raw key bytes, or None if the variable is not set.

    Raises:
        ValueError: If the key does not decode to 32, 48 or 64 bytes.
    """
    value = os.environ.get(name)
    if not value:
        return None
    key_bytes = base64.b64decode(value)
    if len(key_bytes) not in KEY_LENGTHS:
        raise ValueError(
            f"{name} must decode to 32, 48 or 64 bytes, "
            f"got {len(key_bytes)}"
        )
    return key_bytes


def parse_session_ids(raw: str) -> list[Optional[str]]:
    """Parse a comma separated slot list; empty items mean the default slot.

    >>> parse_session_ids(",admin")
    [None, 'admin']
    """
    return [item.strip() or None for item in raw.split(",")]


def generate_encryption_key(length: int = 32) -> str:
    """Generate a random key for the reversible provider, base64 encoded.

    This is a utility for operators to generate new keys.
    """
    if length not in KEY_LENGTHS:
        raise ValueError(f"Key length must be one of {KEY_LENGTHS}")
    return base64.b64encode(secrets.token_bytes(length)).decode("ascii")


class FieldBindings(BaseModel):
    """Names of the principal attributes the credential core reads and writes."""

    secret_digest_field: str = "crypted_password"
    salt_field: str = "password_salt"
    correlation_token_field: str = "remember_token"
    identity_field: str = "id"

    model_config = {"frozen": True}

    def missing_on(self, obj: Any) -> list[str]:
        """Return the bound attribute names ``obj`` does not expose."""
        return [
            name for name in (
                self.secret_digest_field,
                self.salt_field,
                self.correlation_token_field,
                self.identity_field,
            ) if not hasattr(obj, name)
        ]


class CredentialsConfig(BaseModel):
    """Validated credentials configuration."""

    crypto_provider: str = Field(default="sha512")
    session_ids: list[Optional[Any]] = Field(default_factory=lambda: [None])
    bindings: FieldBindings = Field(default_factory=FieldBindings)
    encryption_key: Optional[bytes] = None
    pbkdf2_iterations: int = Field(default=100_000, ge=1_000)

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("crypto_provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Validate crypto provider is supported."""
        v = v.lower()
        if v not in PROVIDERS:
            raise ValueError(f"Unsupported crypto provider: {v}")
        return v

    @field_validator("encryption_key")
    @classmethod
    def validate_key_length(cls, v: Optional[bytes]) -> Optional[bytes]:
        if v is not None and len(v) not in KEY_LENGTHS:
            raise ValueError(
                f"encryption_key must be 32, 48 or 64 bytes, got {len(v)}"
            )
        return v

    @model_validator(mode="after")
    def validate_reversible_key(self) -> "CredentialsConfig":
        """A reversible provider cannot work without a key."""
        if self.crypto_provider in REVERSIBLE_PROVIDERS and self.encryption_key is None:
            raise ValueError(
                f"crypto_provider {self.crypto_provider!r} requires an encryption_key"
            )
        return self

    @classmethod
    def from_env(cls) -> "CredentialsConfig":
        """Create CredentialsConfig by loading values from environment.

        Raises:
            ConfigurationError: If any value is missing or invalid.
        """
        values: dict[str, Any] = {
            "crypto_provider": os.environ.get("CREDENTIALS_CRYPTO_PROVIDER", "sha512"),
        }
        raw_ids = os.environ.get("CREDENTIALS_SESSION_IDS")
        if raw_ids is not None:
            values["session_ids"] = parse_session_ids(raw_ids) if raw_ids.strip() else []
        iterations = os.environ.get("CREDENTIALS_PBKDF2_ITERATIONS")
        if iterations:
            values["pbkdf2_iterations"] = iterations
        try:
            values["encryption_key"] = load_encryption_key()
            config = cls(**values)
        except (ValueError, PydanticValidationError) as err:
            raise ConfigurationError(f"Invalid credentials configuration: {err}") from err
        logger.debug(
            "Credentials config loaded: provider=%s slots=%s",
            config.crypto_provider, config.session_ids,
        )
        return config
