"""
CredentialStore — Salted credential storage bound to a principal record.

Provides the public API for a principal's password credential:
- ``assign_secret(plaintext)`` / ``confirm_secret(plaintext)`` — stage a new secret
- ``verify_secret(attempted)`` — check a secret against the stored digest
- ``save()`` — validate, persist and reconcile the principal's sessions
- ``reset_secret()`` — replace the secret with a random one
- ``forget()`` — rotate the correlation token, signing out every session
- ``forget_all()`` — rotate the correlation token of every stored principal

Known limitation:
    There is no locking. Two concurrent changes of the *same* principal race
    on salt and token regeneration; the persistence backend (last write wins
    or optimistic concurrency) is the only guard.

Security Note:
    Never log plaintext secrets, digests, salts or tokens. Only log principal
    ids, slot ids and operation names.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .config import CredentialsConfig
from .correlator import ReconciliationReport, SessionCorrelator, SessionSnapshot
from .errors import ConfigurationError, SecretResetError, ValidationError
from .providers import CryptoProvider, get_provider, verify
from .registry import PersistenceBackend, SaveHooks, SessionRegistry
from .tokens import generate_reset_secret, generate_token

logger = logging.getLogger("navigator.credentials")


@dataclass
class SaveContext:
    """Values that live for exactly one ``save()`` call."""

    skip_session_maintenance: bool = False
    synchronize: bool = False
    snapshot: Optional[SessionSnapshot] = None
    committed: bool = False


@dataclass
class SaveResult:
    """Outcome of a ``save()`` call; truthy when the principal was committed."""

    saved: bool = False
    report: Optional[ReconciliationReport] = None

    def __bool__(self) -> bool:
        return self.saved


class CredentialStore:
    """Credential operations for a single principal.

    The store reads and writes the principal's digest, salt and correlation
    token through ``config.bindings``; the pending secret and confirmation are
    kept on the store and cleared after a successful save.

    Args:
        principal: The user record.
        backend: Persistence backend that commits the principal.
        config: Credentials configuration (defaults to ``CredentialsConfig()``).
        provider: Crypto provider; built from ``config`` when omitted.
        registry: Session registry, required unless ``config.session_ids`` is empty.
        new_record: Whether the principal has never been persisted. Defaults
            to True when the principal has no identity yet.
    """

    def __init__(
        self,
        principal: Any,
        backend: PersistenceBackend,
        *,
        config: Optional[CredentialsConfig] = None,
        provider: Optional[CryptoProvider] = None,
        registry: Optional[SessionRegistry] = None,
        new_record: Optional[bool] = None,
    ):
        self._config = config or CredentialsConfig()
        self._fields = self._config.bindings
        missing = self._fields.missing_on(principal)
        if missing:
            raise ConfigurationError(
                f"Principal {type(principal).__name__} is missing bound field(s): "
                f"{', '.join(missing)}"
            )
        if backend is None:
            raise ConfigurationError("A persistence backend is required")
        self._principal = principal
        self._backend = backend
        self._provider = provider or get_provider(self._config)
        self._correlator = SessionCorrelator(
            registry, self._config.session_ids, self._fields,
        )
        if new_record is None:
            new_record = self.identity is None
        self._new_record = new_record
        self._saved_token = None if new_record else self.correlation_token
        self._pending_secret: Optional[str] = None
        self._pending_confirmation: Optional[str] = None
        self._secret_attempted = False

    def __repr__(self) -> str:
        return (
            f"<CredentialStore principal={self.identity!r} "
            f"provider={self._provider.name} new={self._new_record}>"
        )

    # ------------------------------------------------------------------
    # Bound fields
    # ------------------------------------------------------------------

    @property
    def principal(self) -> Any:
        return self._principal

    @property
    def provider(self) -> CryptoProvider:
        return self._provider

    @property
    def new_record(self) -> bool:
        return self._new_record

    @property
    def identity(self) -> Any:
        return getattr(self._principal, self._fields.identity_field)

    @property
    def salt(self) -> Optional[str]:
        return getattr(self._principal, self._fields.salt_field)

    @property
    def credential_digest(self) -> Optional[str]:
        return getattr(self._principal, self._fields.secret_digest_field)

    @property
    def correlation_token(self) -> Optional[str]:
        return getattr(self._principal, self._fields.correlation_token_field)

    def _set(self, name: str, value: str) -> None:
        setattr(self._principal, name, value)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def generate_token() -> str:
        """Unique token usable as correlation token or one-time reset value."""
        return generate_token()

    def assign_secret(self, plaintext: Optional[str]) -> None:
        """Stage a new secret and derive a fresh salt, token and digest.

        Empty or None values are ignored. Any previously staged secret and
        confirmation are discarded.
        """
        if not plaintext:
            return
        self._secret_attempted = True
        self._pending_secret = plaintext
        self._pending_confirmation = None
        self._set(self._fields.correlation_token_field, generate_token())
        salt = generate_token()
        self._set(self._fields.salt_field, salt)
        self._set(
            self._fields.secret_digest_field,
            self._provider.digest(plaintext, salt),
        )

    def confirm_secret(self, plaintext: Optional[str]) -> None:
        self._pending_confirmation = plaintext

    def verify_secret(self, attempted: Optional[str]) -> bool:
        """Check ``attempted`` against the stored salt and digest.

        Raises:
            ProviderError: If the crypto provider fails.
        """
        return verify(
            self._provider, attempted, self.salt, self.credential_digest,
        )

    def validate(self) -> None:
        """Check the staged secret before persisting.

        Raises:
            ValidationError: If the secret is missing or not confirmed.
        """
        if not (self._new_record or self._secret_attempted):
            return
        if not self._pending_secret:
            raise ValidationError("secret", "secret required")
        if self._pending_confirmation != self._pending_secret:
            raise ValidationError("confirmation", "confirmation mismatch")

    async def save(self, *, maintain_sessions: bool = True) -> SaveResult:
        """Validate and persist the principal, then reconcile its sessions.

        Sessions are only touched when ``maintain_sessions`` is set, the
        correlation token changed since the last save, and session tracking
        is enabled.

        Raises:
            ValidationError: Nothing is persisted.
        """
        self.validate()
        ctx = SaveContext(skip_session_maintenance=not maintain_sessions)
        token_changed = self.correlation_token != self._saved_token
        ctx.synchronize = (
            not ctx.skip_session_maintenance
            and token_changed
            and self._correlator.enabled()
        )
        result = SaveResult()

        async def before_commit() -> None:
            if ctx.synchronize:
                ctx.snapshot = await self._correlator.snapshot(self._principal)

        async def after_commit() -> None:
            ctx.committed = True
            if ctx.snapshot is not None:
                result.report = await self._correlator.reconcile(
                    self._principal, ctx.snapshot,
                )

        try:
            result.saved = await self._backend.persist(
                self._principal, SaveHooks(before_commit, after_commit),
            )
        finally:
            # once committed, pending state is stale even if reconciliation raised
            if result.saved or ctx.committed:
                self._mark_saved()
        if result.saved:
            logger.debug(
                "Credentials saved: principal=%s sessions=%s",
                self.identity, ctx.synchronize,
            )
        else:
            logger.debug("Credentials not saved: principal=%s", self.identity)
        return result

    def _mark_saved(self) -> None:
        self._saved_token = self.correlation_token
        self._new_record = False
        self._secret_attempted = False
        self._pending_secret = None
        self._pending_confirmation = None

    async def reset_secret(self) -> str:
        """Replace the secret with a random 10-character one and persist it.

        Sessions are not maintained by this save. The returned plaintext is
        the only copy of the new secret.

        Raises:
            SecretResetError: If the backend did not persist the new secret.
        """
        secret = generate_reset_secret()
        self.assign_secret(secret)
        self.confirm_secret(secret)
        result = await self.save(maintain_sessions=False)
        if not result.saved:
            logger.warning("Secret reset not persisted: principal=%s", self.identity)
            raise SecretResetError(
                f"Secret reset was not persisted for principal {self.identity!r}"
            )
        return secret

    randomize_secret = reset_secret

    async def forget(self) -> SaveResult:
        """Rotate the correlation token only, invalidating every session.

        Salt and digest are kept, so the current secret still verifies.
        """
        self._set(self._fields.correlation_token_field, generate_token())
        return await self.save(maintain_sessions=False)


async def forget_all(
    backend: PersistenceBackend,
    store_factory: Callable[[Any], CredentialStore],
    batch_size: int = 50,
) -> dict:
    """Call ``forget()`` on every principal the backend holds, page by page.

    Args:
        backend: Backend used to enumerate principals.
        store_factory: Builds a ``CredentialStore`` for a fetched principal.
        batch_size: Number of principals fetched per page.

    Returns:
        Stats dict with keys: total, forgotten, errors.
    """
    stats = {"total": 0, "forgotten": 0, "errors": 0}
    offset = 0

    logger.info("Forgetting all principals (batch_size=%d)", batch_size)

    while True:
        records = await backend.fetch(batch_size, offset)
        if not records:
            break
        for record in records:
            stats["total"] += 1
            try:
                store = store_factory(record)
                result = await store.forget()
                if result.saved:
                    stats["forgotten"] += 1
                else:
                    stats["errors"] += 1
            except Exception as err:
                logger.error("Error forgetting principal: %s", err)
                stats["errors"] += 1
        offset += len(records)

    logger.info("Forget all complete: %s", stats)
    return stats
