from fastapi import APIRouter, Depends

from campus.core import config
from campus.routers.auth import get_auth_service
from campus.schemas.password_reset import (
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetRequested,
    TokenStatus,
)
from campus.services.auth import AuthService

router = APIRouter()

GENERIC_REQUEST_MESSAGE = "If an account exists with this identifier, a reset link has been sent."


@router.post("/request", response_model=PasswordResetRequested)
def request_reset(payload: PasswordResetRequest, auth: AuthService = Depends(get_auth_service)):
    reset = auth.request_password_reset(payload.identifier)
    # same response whether or not the account exists
    body = {"message": GENERIC_REQUEST_MESSAGE, "reset_token": None}
    if reset is not None and config.EXPOSE_RESET_TOKEN:
        body["reset_token"] = reset.token
    return body


@router.get("/verify/{token}", response_model=TokenStatus)
def verify_token(token: str, auth: AuthService = Depends(get_auth_service)):
    reset = auth.verify_reset_token(token)
    return {"message": "Token is valid", "user_id": reset.user_id}


@router.post("/reset")
def reset_password(payload: PasswordResetConfirm, auth: AuthService = Depends(get_auth_service)):
    auth.reset_password(payload.token, payload.new_password)
    return {"message": "Password reset successfully"}
