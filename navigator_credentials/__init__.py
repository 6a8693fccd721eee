"""Navigator Credentials — salted credentials bound to user sessions.

Known limitation:
    No locking is done for a single principal. Concurrent changes of the
    same principal are only guarded by the persistence backend, and a
    login into the primary slot is first-writer-wins.
"""

from .version import __version__
from .config import CredentialsConfig, FieldBindings, generate_encryption_key
from .errors import (
    CredentialError,
    ConfigurationError,
    ValidationError,
    ProviderError,
    SecretResetError,
    SessionExistsError,
    ReconciliationPartialFailure,
)
from .providers import (
    Capability,
    CryptoProvider,
    HashProvider,
    ReversibleProvider,
    Sha512Provider,
    Pbkdf2Provider,
    AesSivProvider,
    get_provider,
)
from .tokens import generate_token, generate_reset_secret
from .models import Principal, SessionRecord
from .registry import PersistenceBackend, SessionRegistry, SaveHooks
from .correlator import (
    LoginState,
    SessionCorrelator,
    SessionSnapshot,
    ReconciliationReport,
)
from .credentials import CredentialStore, SaveResult, forget_all

__all__ = [
    "__version__",
    "CredentialsConfig",
    "FieldBindings",
    "generate_encryption_key",
    "CredentialError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "SecretResetError",
    "SessionExistsError",
    "ReconciliationPartialFailure",
    "Capability",
    "CryptoProvider",
    "HashProvider",
    "ReversibleProvider",
    "Sha512Provider",
    "Pbkdf2Provider",
    "AesSivProvider",
    "get_provider",
    "generate_token",
    "generate_reset_secret",
    "Principal",
    "SessionRecord",
    "PersistenceBackend",
    "SessionRegistry",
    "SaveHooks",
    "LoginState",
    "SessionCorrelator",
    "SessionSnapshot",
    "ReconciliationReport",
    "CredentialStore",
    "SaveResult",
    "forget_all",
]
