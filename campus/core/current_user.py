from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from campus.core.config import SESSION_COOKIE_NAME
from campus.core.deps import get_session_store, get_storage
from campus.core.errors import AuthenticationRequired
from campus.db.session_store import SessionStore
from campus.db.storage import DatabaseStorage
from campus.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_session_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Session id from ``Authorization: Bearer`` or, failing that, the session cookie."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(SESSION_COOKIE_NAME)


def get_optional_user(
    sid: Optional[str] = Depends(get_session_id),
    sessions: SessionStore = Depends(get_session_store),
    storage: DatabaseStorage = Depends(get_storage),
) -> Optional[User]:
    if not sid:
        return None
    user_id = sessions.get(sid)
    if user_id is None:
        return None
    return storage.get_user(user_id)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise AuthenticationRequired()
    return user
