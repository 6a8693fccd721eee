import uuid
from typing import Any, Optional, Union
from datetime import datetime, timezone

import orjson
from pydantic import BaseModel

from .config import FieldBindings


class Principal(BaseModel):
    """Principal.

    Default user record shape for the credential core. Any object exposing
    the attribute names in ``FieldBindings`` can be used instead.
    """
    id: Optional[Union[int, str]] = None
    login: Optional[str] = None
    crypted_password: Optional[str] = None
    password_salt: Optional[str] = None
    remember_token: Optional[str] = None

    model_config = {"validate_assignment": True}


class SessionRecord:
    """Session record bound to one slot.

    Correlates with at most one principal through its identity and the
    principal's correlation token at the time the session was attached.
    """

    def __init__(
        self,
        slot_id: Optional[Any] = None,
        *,
        principal_id: Optional[Any] = None,
        correlation_token: Optional[str] = None,
        id: Optional[str] = None,
        created: Optional[int] = None,
        new: bool = True,
    ) -> None:
        self._id_ = id or uuid.uuid4().hex
        self._slot_id = slot_id
        self.principal_id = principal_id
        self.correlation_token = correlation_token
        self._new = new
        self._changed = new
        if created is None:
            created = int(datetime.now(timezone.utc).timestamp())
        self._created = created

    def __repr__(self) -> str:
        return (
            f'<NAV-Session [slot:{self._slot_id!r}, new:{self.new}, '
            f'created:{self.created}] principal={self.principal_id!r}>'
        )

    # --- Properties ---

    @property
    def session_id(self) -> str:
        return self._id_

    @property
    def slot_id(self) -> Optional[Any]:
        return self._slot_id

    @property
    def new(self) -> bool:
        return self._new

    @property
    def created(self) -> int:
        return self._created

    @property
    def empty(self) -> bool:
        """True when no principal is attached."""
        return self.principal_id is None

    @property
    def is_changed(self) -> bool:
        return self._changed

    @is_changed.setter
    def is_changed(self, value: bool) -> None:
        self._changed = value

    def references(self, principal: Any, fields: FieldBindings) -> bool:
        """Whether this session belongs to ``principal``."""
        identity = getattr(principal, fields.identity_field, None)
        return identity is not None and self.principal_id == identity

    def attach(self, principal: Any, fields: FieldBindings) -> None:
        """Point the session at the principal's latest identity and token."""
        self.principal_id = getattr(principal, fields.identity_field)
        self.correlation_token = getattr(principal, fields.correlation_token_field)
        self._changed = True

    # --- Serialization ---

    def encode(self) -> bytes:
        """Serialize this record with orjson.

        Raises:
            RuntimeError: Error converting data to json.
        """
        try:
            return orjson.dumps({
                "session_id": self._id_,
                "slot_id": self._slot_id,
                "principal_id": self.principal_id,
                "correlation_token": self.correlation_token,
                "created": self._created,
            })
        except TypeError as err:
            raise RuntimeError(err) from err

    @classmethod
    def decode(cls, data: Union[bytes, str]) -> "SessionRecord":
        """Restore a record produced by ``encode``.

        Raises:
            RuntimeError: Error converting data from json.
        """
        try:
            obj = orjson.loads(data)
            return cls(
                obj["slot_id"],
                principal_id=obj["principal_id"],
                correlation_token=obj["correlation_token"],
                id=obj["session_id"],
                created=obj["created"],
                new=False,
            )
        except (orjson.JSONDecodeError, KeyError) as err:
            raise RuntimeError(err) from err
