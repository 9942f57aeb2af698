from datetime import datetime
from typing import Optional
from pydantic import Field

from .record import Record, generate_id, timestamp
from ..core.security import PrincipalKind

class Session(Record):
    id: str = Field(default_factory=generate_id)
    principal_id: str = Field(alias="principalId")
    kind: PrincipalKind
    expires_at: str = Field(alias="expiresAt")
    remember: bool = False
    created_at: str = Field(default_factory=timestamp, alias="createdAt")

    def is_expired(self, now: datetime) -> bool:
        return datetime.fromisoformat(self.expires_at) <= now

class SavedCredentials(Record):
    """Login form prefill, kept only for sessions created with remember.

    Bound to the remembered session that saved it: only the client holding
    that session's token can read it back.
    """
    identifier: str = Field(alias="emailOrCpf")
    password: str
    kind: PrincipalKind
    principal_id: Optional[str] = Field(default=None, alias="principalId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    last_used: str = Field(default_factory=timestamp, alias="lastUsed")
