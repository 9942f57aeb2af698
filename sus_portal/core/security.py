from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
from enum import Enum

from .config import settings

# Session token transport
security = HTTPBearer(auto_error=False)

class PrincipalKind(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    kind: Optional[PrincipalKind] = None
    sid: Optional[str] = None
    exp: Optional[int] = None

# JWT utilities
def create_session_token(
    principal_id: str,
    kind: PrincipalKind,
    session_id: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create the JWT handed to the client for one stored session."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)

    to_encode = {
        "sub": principal_id,
        "kind": kind.value,
        "sid": session_id,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

def verify_token(token: str, verify_exp: bool = True) -> Optional[TokenPayload]:
    """Verify and decode a session token.

    With ``verify_exp=False`` a lapsed token still decodes, which lets a client
    prove which remembered session it held after that session expired.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": verify_exp}
        )

        return TokenPayload(**payload)

    except (JWTError, ValueError):
        return None

# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
