"""
SessionCorrelator — keeps session slots in step with a principal's credential.

Runs in two phases around the save of a principal whose correlation token
changed:

- ``snapshot()`` (before commit): inspect every configured slot and decide
  whether the principal is logged out, logged in, or the slots belong to
  somebody else.
- ``reconcile()`` (after commit): log the principal into the primary slot,
  or re-attach every session it already holds so they carry the new token.

Session records are never owned here; every read and write goes through the
injected ``SessionRegistry``.
"""
import logging
import warnings
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Optional

from .config import FieldBindings
from .errors import ConfigurationError, ReconciliationPartialFailure, SessionExistsError
from .models import SessionRecord
from .registry import SessionRegistry

logger = logging.getLogger("navigator.credentials")


class LoginState(str, Enum):
    UNKNOWN = "unknown"
    LOGGED_OUT = "logged_out"
    LOGGED_IN = "logged_in"
    # slots are held by other principals only
    OCCUPIED = "occupied"


@dataclass
class SessionSnapshot:
    """Pre-commit view of the slots for one principal."""

    state: LoginState = LoginState.UNKNOWN
    sessions: list[SessionRecord] = field(default_factory=list)


@dataclass
class ReconciliationReport:
    """Outcome of a post-commit reconciliation."""

    state: LoginState = LoginState.UNKNOWN
    created: Optional[SessionRecord] = None
    updated: list[SessionRecord] = field(default_factory=list)
    failures: list[tuple[Any, BaseException]] = field(default_factory=list)

    @property
    def partial_failure(self) -> Optional[ReconciliationPartialFailure]:
        if not self.failures:
            return None
        return ReconciliationPartialFailure(list(self.failures))


class SessionCorrelator:
    """Detects and synchronizes the sessions held by a principal.

    Args:
        registry: Session registry; required when ``session_ids`` is not empty.
        session_ids: Ordered slot ids; the first one is the primary slot.
        fields: Attribute bindings used to read the principal.
    """

    def __init__(
        self,
        registry: Optional[SessionRegistry],
        session_ids: list[Optional[Any]],
        fields: Optional[FieldBindings] = None,
    ) -> None:
        if session_ids and registry is None:
            raise ConfigurationError(
                "A session registry is required when session ids are configured"
            )
        self._registry = registry
        self._session_ids = list(session_ids)
        self._fields = fields or FieldBindings()

    @property
    def session_ids(self) -> list[Optional[Any]]:
        return list(self._session_ids)

    @property
    def primary_session_id(self) -> Optional[Any]:
        return self._session_ids[0] if self._session_ids else None

    def enabled(self) -> bool:
        """Whether there is anything to synchronize at all."""
        return (
            self._registry is not None
            and bool(self._session_ids)
            and self._registry.is_activated()
        )

    async def snapshot(self, principal: Any) -> SessionSnapshot:
        """Inspect every slot before the principal is committed."""
        snapshot = SessionSnapshot()
        occupied = False
        for slot_id in self._session_ids:
            session = await self._registry.find_session(slot_id)
            if session is None or session.empty:
                continue
            occupied = True
            if session.references(principal, self._fields):
                snapshot.sessions.append(session)
        if snapshot.sessions:
            snapshot.state = LoginState.LOGGED_IN
        elif occupied:
            snapshot.state = LoginState.OCCUPIED
        else:
            snapshot.state = LoginState.LOGGED_OUT
        logger.debug(
            "Session snapshot: principal=%s state=%s sessions=%d",
            getattr(principal, self._fields.identity_field, None),
            snapshot.state.value, len(snapshot.sessions),
        )
        return snapshot

    async def reconcile(
        self, principal: Any, snapshot: SessionSnapshot
    ) -> ReconciliationReport:
        """Bring the slots in line with the committed principal.

        Failures on individual slots are collected, not raised; if any
        occurred a ``ReconciliationPartialFailure`` warning is emitted.
        """
        report = ReconciliationReport(state=snapshot.state)
        if snapshot.state is LoginState.LOGGED_OUT:
            await self._create_primary(principal, report)
        elif snapshot.state is LoginState.LOGGED_IN:
            await self._update_sessions(principal, snapshot.sessions, report)
        failure = report.partial_failure
        if failure is not None:
            logger.warning(
                "Session reconciliation incomplete for principal=%s: %s",
                getattr(principal, self._fields.identity_field, None), failure,
            )
            warnings.warn(failure, stacklevel=2)
        return report

    async def _create_primary(
        self, principal: Any, report: ReconciliationReport
    ) -> None:
        # only the primary slot is logged into automatically
        slot_id = self.primary_session_id
        try:
            existing = await self._registry.find_session(slot_id)
            if existing is not None and not existing.empty:
                logger.debug("Primary slot %r already taken, skipping login", slot_id)
                return
            report.created = await self._registry.create_session(slot_id, principal)
        except SessionExistsError:
            logger.debug("Primary slot %r taken concurrently, skipping login", slot_id)
        except Exception as err:
            logger.error("Failed to create session in slot %r: %s", slot_id, err)
            report.failures.append((slot_id, err))

    async def _update_sessions(
        self,
        principal: Any,
        sessions: list[SessionRecord],
        report: ReconciliationReport,
    ) -> None:
        for session in sessions:
            try:
                session.attach(principal, self._fields)
                await self._registry.save_session(session)
                report.updated.append(session)
            except Exception as err:
                logger.error(
                    "Failed to update session in slot %r: %s", session.slot_id, err,
                )
                report.failures.append((session.slot_id, err))
