"""
In-memory backends — reference persistence and session registry.

Useful for tests and single-process tools. Sessions are kept as orjson
encoded records, so every lookup returns a fresh copy like a real store.
"""
import itertools
import logging
from typing import Any, Optional

from ..config import FieldBindings
from ..errors import SessionExistsError
from ..models import SessionRecord
from ..registry import SaveHooks

logger = logging.getLogger("navigator.credentials")


class MemoryPersistence:
    """Stores principals by identity, enforcing unique correlation tokens.

    Principals without an identity get a sequential integer id on their
    first save.
    """

    def __init__(self, fields: Optional[FieldBindings] = None):
        self._fields = fields or FieldBindings()
        self._records: dict[Any, Any] = {}
        self._tokens: dict[Any, Optional[str]] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, identity: Any) -> Optional[Any]:
        return self._records.get(identity)

    def committed_token(self, identity: Any) -> Optional[str]:
        return self._tokens.get(identity)

    def _token_taken(self, identity: Any, token: Optional[str]) -> bool:
        if token is None:
            return False
        return any(
            other != identity and value == token
            for other, value in self._tokens.items()
        )

    async def persist(self, record: Any, hooks: SaveHooks) -> bool:
        await hooks.before_commit()
        identity = getattr(record, self._fields.identity_field)
        token = getattr(record, self._fields.correlation_token_field)
        if self._token_taken(identity, token):
            logger.debug("Refusing duplicate correlation token for principal=%s", identity)
            return False
        if identity is None:
            identity = next(self._ids)
            while identity in self._records:
                identity = next(self._ids)
            setattr(record, self._fields.identity_field, identity)
        self._records[identity] = record
        self._tokens[identity] = token
        await hooks.after_commit()
        return True

    async def fetch(self, limit: int, offset: int) -> list[Any]:
        keys = sorted(self._records, key=str)
        return [self._records[k] for k in keys[offset:offset + limit]]


class MemorySessionRegistry:
    """Keeps one encoded session record per slot."""

    def __init__(
        self,
        fields: Optional[FieldBindings] = None,
        activated: bool = True,
    ):
        self._fields = fields or FieldBindings()
        self._sessions: dict[Optional[Any], bytes] = {}
        self.activated = activated

    def is_activated(self) -> bool:
        return self.activated

    async def find_session(self, slot_id: Optional[Any]) -> Optional[SessionRecord]:
        data = self._sessions.get(slot_id)
        if data is None:
            return None
        return SessionRecord.decode(data)

    async def create_session(self, slot_id: Optional[Any], principal: Any) -> SessionRecord:
        existing = await self.find_session(slot_id)
        if existing is not None and not existing.empty:
            raise SessionExistsError(slot_id)
        session = SessionRecord(slot_id)
        session.attach(principal, self._fields)
        await self.save_session(session)
        logger.debug("Session created in slot %r", slot_id)
        return session

    async def save_session(self, session: SessionRecord) -> None:
        self._sessions[session.slot_id] = session.encode()
        session.is_changed = False

    async def logout(self, slot_id: Optional[Any]) -> None:
        """Drop the session held in ``slot_id``, if any."""
        self._sessions.pop(slot_id, None)

    def slots(self) -> list[Optional[Any]]:
        return list(self._sessions)
