from fastapi import APIRouter, Depends, Response, status

from campus.core.config import SESSION_COOKIE_NAME, SESSION_TTL
from campus.core.current_user import get_current_user, get_session_id
from campus.core.deps import get_session_store, get_storage
from campus.db.session_store import SessionStore
from campus.db.storage import DatabaseStorage
from campus.models.user import User
from campus.schemas.auth import LoginRequest, Token
from campus.schemas.user import UserCreate, UserRead
from campus.services.auth import AuthService

router = APIRouter()


def get_auth_service(
    storage: DatabaseStorage = Depends(get_storage),
    sessions: SessionStore = Depends(get_session_store),
) -> AuthService:
    return AuthService(storage, sessions)


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"description": "Username, email or phone number already registered"},
    },
)
def register(payload: UserCreate, auth: AuthService = Depends(get_auth_service)):
    return auth.register(payload)


@router.post(
    "/login",
    response_model=Token,
    responses={
        401: {"description": "Invalid username or password"},
    },
)
def login(payload: LoginRequest, response: Response, auth: AuthService = Depends(get_auth_service)):
    _user, sid = auth.login(payload.username, payload.password)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        sid,
        max_age=int(SESSION_TTL.total_seconds()),
        httponly=True,
        samesite="lax",
    )
    return {"access_token": sid, "token_type": "bearer"}


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    sid: str | None = Depends(get_session_id),
    _me: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    if sid:
        auth.logout(sid)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user
