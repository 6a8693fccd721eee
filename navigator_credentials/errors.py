"""
Credential Errors — exception taxonomy for credential and session handling.

Every error carries a ``kind`` and a ``message`` so callers can surface
an opaque failure without inspecting the exception type.
"""
from typing import Any, Optional


class CredentialError(Exception):
    """Base class for all navigator-credentials errors."""

    kind: str = "credential"

    def __init__(self, message: str, *args) -> None:
        super().__init__(message, *args)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind!r} message={self.message!r}>"


class ConfigurationError(CredentialError):
    """A required collaborator or setting is missing or invalid."""

    kind = "configuration"


class ValidationError(CredentialError):
    """The pending secret is missing or was not confirmed.

    Attributes:
        field: name of the offending input (``secret`` or ``confirmation``).
        errors: mapping of field name to message, ready for form re-display.
    """

    kind = "validation"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.errors = {field: message}


class ProviderError(CredentialError):
    """The cryptographic provider failed internally."""

    kind = "provider"


class SecretResetError(CredentialError):
    """A reset secret was generated but the backend did not persist it."""

    kind = "reset"


class SessionExistsError(CredentialError):
    """A session slot is already occupied."""

    kind = "session_exists"

    def __init__(self, slot_id: Optional[Any]) -> None:
        super().__init__(f"Session slot {slot_id!r} is already occupied")
        self.slot_id = slot_id


class ReconciliationPartialFailure(CredentialError, UserWarning):
    """One or more session slots could not be updated after a commit.

    The principal's own record is already committed; this is reported
    as a warning and never rolls the commit back.

    Attributes:
        failures: list of ``(slot_id, exception)`` pairs, in slot order.
    """

    kind = "reconciliation"

    def __init__(self, failures: list[tuple[Any, BaseException]]) -> None:
        slots = ", ".join(repr(slot) for slot, _ in failures)
        super().__init__(
            f"Failed to update {len(failures)} session slot(s): {slots}"
        )
        self.failures = failures
