"""
Tests for CredentialStore.

Tests cover:
- Assigning and verifying secrets
- Validation before persistence
- Provider migration and legacy plaintext rows
- reset_secret / forget and session bypass
- forget_all batching
- Concurrent use on distinct principals
"""
import asyncio
import string
from concurrent.futures import ThreadPoolExecutor

import pytest

from navigator_credentials import (
    AesSivProvider,
    ConfigurationError,
    CredentialsConfig,
    CredentialStore,
    Principal,
    ProviderError,
    SecretResetError,
    Sha512Provider,
    ValidationError,
    forget_all,
)

AES_KEY = bytes(range(32))


def credential_fields(store):
    return (store.salt, store.credential_digest, store.correlation_token)


# --- Assign / verify ---

class TestAssignAndVerify:
    """Tests for assign_secret and verify_secret."""

    @pytest.mark.parametrize("secret", ["s3cret", "a", "pässwörd", "with space", "x" * 200])
    def test_assigned_secret_verifies(self, make_store, secret):
        store = make_store()
        store.assign_secret(secret)
        assert store.verify_secret(secret) is True
        assert store.verify_secret(secret + "x") is False

    @pytest.mark.parametrize("empty", ["", None])
    def test_empty_assignment_is_noop(self, make_store, empty):
        store = make_store()
        store.assign_secret("s3cret")
        before = credential_fields(store)
        store.assign_secret(empty)
        assert credential_fields(store) == before
        assert store.verify_secret("s3cret") is True

    def test_assignment_regenerates_salt_and_token(self, make_store):
        store = make_store()
        store.assign_secret("s3cret")
        first = credential_fields(store)
        store.assign_secret("s3cret")
        second = credential_fields(store)
        assert first[0] != second[0]
        assert first[2] != second[2]
        assert second[0] != second[2]

    def test_digest_and_salt_written_through_bindings(self, make_store):
        principal = Principal(login="alice")
        store = make_store(principal)
        store.assign_secret("s3cret")
        assert principal.password_salt == store.salt
        assert principal.crypted_password == Sha512Provider().digest("s3cret", store.salt)
        assert principal.remember_token == store.correlation_token

    def test_verify_without_credential(self, make_store):
        assert make_store().verify_secret("anything") is False

    def test_legacy_plaintext_row(self, make_store):
        principal = Principal(id=1, crypted_password="plain", password_salt="salt")
        store = make_store(principal)
        assert store.verify_secret("plain") is True
        assert store.verify_secret("other") is False

    def test_legacy_row_without_salt(self, make_store):
        principal = Principal(id=1, crypted_password="plain")
        assert make_store(principal).verify_secret("plain") is False

    def test_switch_to_reversible_provider(self, make_store):
        principal = Principal(login="alice")
        store = make_store(principal)
        store.assign_secret("s3cret")

        aes = AesSivProvider(AES_KEY)
        principal.crypted_password = aes.digest("s3cret", principal.password_salt)
        migrated = make_store(principal, provider=aes)
        assert migrated.verify_secret("s3cret") is True
        assert migrated.verify_secret("wrong") is False

    def test_provider_error_surfaces(self, make_store):
        principal = Principal(id=1, crypted_password="garbage", password_salt="salt")
        store = make_store(principal, provider=AesSivProvider(AES_KEY))
        with pytest.raises(ProviderError):
            store.verify_secret("s3cret")

    def test_generate_token(self):
        assert len(CredentialStore.generate_token()) == 128


# --- Validation ---

class TestValidation:
    """Tests for validation before persistence."""

    async def test_new_record_requires_secret(self, make_store, backend):
        store = make_store()
        with pytest.raises(ValidationError) as exc:
            await store.save()
        assert exc.value.field == "secret"
        assert exc.value.errors == {"secret": "secret required"}
        assert len(backend) == 0

    async def test_confirmation_mismatch(self, make_store, backend, registry):
        store = make_store()
        store.assign_secret("s3cret")
        store.confirm_secret("s3cre7")
        with pytest.raises(ValidationError) as exc:
            await store.save()
        assert exc.value.field == "confirmation"
        assert str(exc.value) == "confirmation mismatch"
        assert exc.value.kind == "validation"
        assert len(backend) == 0
        assert registry.slots() == []

    async def test_missing_confirmation(self, make_store):
        store = make_store()
        store.assign_secret("s3cret")
        with pytest.raises(ValidationError):
            await store.save()

    async def test_assignment_discards_previous_confirmation(self, make_store):
        store = make_store()
        store.confirm_secret("s3cret")
        store.assign_secret("s3cret")
        with pytest.raises(ValidationError):
            await store.save()

    async def test_existing_record_without_change(self, create_user, make_store):
        store = await create_user()
        again = make_store(store.principal)
        assert again.new_record is False
        result = await again.save()
        assert result.saved is True
        assert result.report is None

    async def test_pending_secret_cleared_after_save(self, create_user):
        store = await create_user()
        # nothing staged: a second save needs no confirmation
        assert (await store.save()).saved is True


# --- Persistence ---

class TestSave:
    """Tests for save()."""

    async def test_new_principal_gets_identity(self, create_user, backend):
        store = await create_user()
        assert store.identity == 1
        assert backend.get(1) is store.principal
        assert store.new_record is False

    async def test_duplicate_correlation_token_is_refused(self, create_user):
        alice = await create_user("alice")
        bob = await create_user("bob")
        bob.principal.remember_token = alice.correlation_token
        result = await bob.save()
        assert result.saved is False
        assert not result


# --- reset_secret ---

class TestResetSecret:
    """Tests for reset_secret()."""

    async def test_reset_returns_usable_secret(self, create_user, backend):
        store = await create_user()
        secret = await store.reset_secret()
        assert len(secret) == 10
        assert set(secret) <= set(string.ascii_letters + string.digits)
        assert store.verify_secret(secret) is True
        assert store.verify_secret("s3cret") is False
        assert backend.committed_token(store.identity) == store.correlation_token

    async def test_reset_skips_session_maintenance(self, create_user, registry):
        store = await create_user()
        before = await registry.find_session(None)
        await store.reset_secret()
        after = await registry.find_session(None)
        assert after.correlation_token == before.correlation_token
        assert after.correlation_token != store.correlation_token

    async def test_randomize_alias(self, create_user):
        store = await create_user()
        secret = await store.randomize_secret()
        assert store.verify_secret(secret) is True

    async def test_unpersisted_reset_raises(self, create_user, backend, monkeypatch):
        store = await create_user()
        committed = backend.committed_token(store.identity)

        async def refuse(record, hooks):
            return False

        monkeypatch.setattr(backend, "persist", refuse)
        with pytest.raises(SecretResetError) as exc:
            await store.reset_secret()
        assert exc.value.kind == "reset"
        assert backend.committed_token(store.identity) == committed


# --- forget ---

class TestForget:
    """Tests for forget()."""

    async def test_forget_rotates_token_only(self, create_user, backend):
        store = await create_user()
        salt, digest, token = credential_fields(store)
        result = await store.forget()
        assert result.saved is True
        assert store.correlation_token != token
        assert store.salt == salt
        assert store.credential_digest == digest
        assert store.verify_secret("s3cret") is True
        assert backend.committed_token(store.identity) == store.correlation_token

    async def test_forget_skips_session_maintenance(self, create_user, registry):
        store = await create_user()
        token = store.correlation_token
        result = await store.forget()
        assert result.report is None
        session = await registry.find_session(None)
        assert session.correlation_token == token

    async def test_bypass_does_not_leak_after_failure(self, create_user, backend, registry, monkeypatch):
        store = await create_user()
        original = backend.persist

        async def broken(record, hooks):
            raise RuntimeError("database is down")

        monkeypatch.setattr(backend, "persist", broken)
        with pytest.raises(RuntimeError):
            await store.reset_secret()
        monkeypatch.setattr(backend, "persist", original)

        store.assign_secret("n3w-secret")
        store.confirm_secret("n3w-secret")
        result = await store.save()
        assert result.saved is True
        assert result.report is not None
        session = await registry.find_session(None)
        assert session.correlation_token == store.correlation_token


# --- forget_all ---

class TestForgetAll:
    """Tests for forget_all()."""

    async def test_forget_all_pages_through_principals(self, create_user, backend, make_store):
        stores = [await create_user(name) for name in ("alice", "bob", "carol")]
        tokens = [s.correlation_token for s in stores]

        stats = await forget_all(
            backend, lambda p: make_store(p, new_record=False), batch_size=2,
        )
        assert stats == {"total": 3, "forgotten": 3, "errors": 0}
        for store, token in zip(stores, tokens):
            assert backend.committed_token(store.identity) != token
            assert store.verify_secret("s3cret") is True

    async def test_forget_all_counts_errors(self, create_user, backend, make_store):
        await create_user("alice")
        await create_user("bob")

        def factory(principal):
            if principal.login == "bob":
                raise ConfigurationError("broken record")
            return make_store(principal, new_record=False)

        stats = await forget_all(backend, factory)
        assert stats == {"total": 2, "forgotten": 1, "errors": 1}

    async def test_forget_all_empty_backend(self, backend, make_store):
        stats = await forget_all(backend, make_store)
        assert stats == {"total": 0, "forgotten": 0, "errors": 0}


# --- Configuration ---

class TestStoreConfiguration:
    """Tests for store construction."""

    def test_principal_missing_fields(self, backend, registry):
        with pytest.raises(ConfigurationError):
            CredentialStore(object(), backend, registry=registry)

    def test_slots_require_registry(self, backend):
        with pytest.raises(ConfigurationError):
            CredentialStore(Principal(), backend)

    def test_backend_required(self, registry):
        with pytest.raises(ConfigurationError):
            CredentialStore(Principal(), None, registry=registry)

    async def test_no_slots_no_registry(self, backend):
        store = CredentialStore(
            Principal(), backend, config=CredentialsConfig(session_ids=[]),
        )
        store.assign_secret("s3cret")
        store.confirm_secret("s3cret")
        result = await store.save()
        assert result.saved is True
        assert result.report is None

    def test_provider_from_config(self, backend):
        config = CredentialsConfig(
            session_ids=[], crypto_provider="aes-siv", encryption_key=AES_KEY,
        )
        store = CredentialStore(Principal(), backend, config=config)
        assert isinstance(store.provider, AesSivProvider)
        store.assign_secret("s3cret")
        assert store.provider.reverse(store.credential_digest) == "s3cret" + store.salt


# --- Concurrency ---

class TestConcurrency:
    """Distinct principals never interfere."""

    def test_threads_assign_independently(self, make_store):
        stores = [make_store(Principal(login=f"user{i}")) for i in range(16)]

        def assign(pair):
            index, store = pair
            store.assign_secret(f"secret-{index}")
            return store

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(assign, enumerate(stores)))

        assert len({s.salt for s in stores}) == 16
        assert len({s.correlation_token for s in stores}) == 16
        assert len({s.credential_digest for s in stores}) == 16
        for index, store in enumerate(stores):
            assert store.verify_secret(f"secret-{index}") is True
            assert store.verify_secret(f"secret-{index + 1}") is False

    async def test_concurrent_saves(self, make_store, backend):
        async def create(index):
            store = make_store(Principal(login=f"user{index}"))
            store.assign_secret(f"secret-{index}")
            store.confirm_secret(f"secret-{index}")
            return await store.save()

        results = await asyncio.gather(*(create(i) for i in range(10)))
        assert all(r.saved for r in results)
        assert len(backend) == 10
