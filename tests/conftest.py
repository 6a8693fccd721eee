import pytest

from navigator_credentials import CredentialsConfig, CredentialStore, Principal
from navigator_credentials.backends import MemoryPersistence, MemorySessionRegistry


@pytest.fixture
def backend():
    """Fresh in-memory principal storage."""
    return MemoryPersistence()


@pytest.fixture
def registry():
    """Fresh, activated in-memory session registry."""
    return MemorySessionRegistry()


@pytest.fixture
def config():
    """Config tracking a primary (None) and a secondary slot."""
    return CredentialsConfig(session_ids=[None, "secondary"])


@pytest.fixture
def make_store(backend, registry, config):
    """Build a CredentialStore wired to the shared backend and registry."""
    def _make(principal=None, **kwargs):
        kwargs.setdefault("config", config)
        kwargs.setdefault("registry", registry)
        return CredentialStore(principal or Principal(login="alice"), backend, **kwargs)
    return _make


@pytest.fixture
def create_user(make_store):
    """Create and persist a principal with a confirmed secret."""
    async def _create(login="alice", secret="s3cret", **kwargs):
        store = make_store(Principal(login=login), **kwargs)
        store.assign_secret(secret)
        store.confirm_secret(secret)
        result = await store.save()
        assert result.saved is True
        return store
    return _create
