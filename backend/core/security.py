from fastapi import Depends
from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.security import HTTPBearer
from sqlalchemy.orm import Session

from backend.db import get_db
from backend.models import UserSession
from backend.services.auth_service import find_active_session


bearer_scheme = HTTPBearer(auto_error=False)


def read_bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """Extract a Bearer token from authorization credentials.

    Returns None when credentials are missing, malformed, or empty.
    """

    if credentials is None:
        return None

    if credentials.scheme.lower() != "bearer" or not credentials.credentials.strip():
        return None

    return credentials.credentials.strip()


def get_auth_session(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    db: Session = Depends(get_db),
) -> UserSession | None:
    """Resolve the caller's session, or None when unauthenticated."""

    token = read_bearer_token(credentials)
    if token is None:
        return None
    return find_active_session(db, token)
