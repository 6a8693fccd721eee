"""
Collaborator interfaces consumed by the credential core.

Storage is not implemented here: applications plug in their own
``PersistenceBackend`` (database rows, ORM models) and ``SessionRegistry``
(cookie store, Redis, in-process). See ``backends.memory`` for a
reference implementation of both.
"""
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from .models import SessionRecord


Hook = Callable[[], Awaitable[None]]


async def _noop() -> None:
    return None


class SaveHooks:
    """Callbacks a backend runs around a single logical save.

    ``before_commit`` runs before the record is written, while lookups still
    see the previous state. ``after_commit`` runs only after the write
    succeeded.
    """

    __slots__ = ("before_commit", "after_commit")

    def __init__(
        self,
        before_commit: Optional[Hook] = None,
        after_commit: Optional[Hook] = None,
    ) -> None:
        self.before_commit: Hook = before_commit or _noop
        self.after_commit: Hook = after_commit or _noop


@runtime_checkable
class PersistenceBackend(Protocol):
    """Persists principal records."""

    async def persist(self, record: Any, hooks: SaveHooks) -> bool:
        """Save ``record``, running ``hooks`` around the commit.

        Returns:
            True if the record was committed, False if the backend refused it.
        """
        ...

    async def fetch(self, limit: int, offset: int) -> list[Any]:
        """Return a page of stored principal records, in a stable order."""
        ...


@runtime_checkable
class SessionRegistry(Protocol):
    """Tracks session records per slot."""

    def is_activated(self) -> bool:
        """Whether session tracking is enabled at all."""
        ...

    async def find_session(self, slot_id: Optional[Any]) -> Optional[SessionRecord]:
        ...

    async def create_session(self, slot_id: Optional[Any], principal: Any) -> SessionRecord:
        """Create a session for ``principal`` in ``slot_id``.

        Raises:
            SessionExistsError: If the slot is already occupied.
        """
        ...

    async def save_session(self, session: SessionRecord) -> None:
        ...
