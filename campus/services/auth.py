import logging
from typing import Optional, Protocol

from campus.core.config import PASSWORD_RESET_TTL
from campus.core.errors import (
    ConflictError,
    InvalidCredentials,
    TokenExpired,
    TokenNotFound,
    TokenUsed,
    UniqueConstraintViolation,
)
from campus.core.security import burn_password_check, hash_password, new_reset_token, verify_password
from campus.core.validation import validate
from campus.db.base_class import as_utc, utcnow
from campus.db.session_store import SessionStore
from campus.db.storage import DatabaseStorage
from campus.models.password_reset import PasswordReset
from campus.models.user import User
from campus.schemas.user import UserCreate

logger = logging.getLogger(__name__)


class ResetNotifier(Protocol):
    def send_reset_token(self, user: User, reset: PasswordReset, channel: str) -> None: ...


class LoggingResetNotifier:
    """Stand-in delivery channel: records that a token went out, never the token."""

    def send_reset_token(self, user: User, reset: PasswordReset, channel: str) -> None:
        logger.info(
            "Password reset token issued for user %s via %s (expires %s)",
            user.id,
            channel,
            reset.expires_at.isoformat(),
        )


class AuthService:
    def __init__(self, storage: DatabaseStorage, sessions: SessionStore,
                 notifier: ResetNotifier | None = None):
        self.storage = storage
        self.sessions = sessions
        self.notifier = notifier or LoggingResetNotifier()

    def register(self, payload: dict | UserCreate) -> User:
        data: UserCreate = validate("user", payload)
        try:
            user = self.storage.create_user(
                username=data.username,
                email=data.email,
                hashed_password=hash_password(data.password),
                role=data.role,
                first_name=data.first_name,
                last_name=data.last_name,
                phone_number=data.phone_number,
            )
        except UniqueConstraintViolation as exc:
            field = exc.field or "username, email or phone number"
            raise ConflictError(f"{field} is already registered") from exc
        logger.info("Registered user %s (%s)", user.id, user.role)
        return user

    def login(self, username: str, password: str) -> tuple[User, str]:
        user = self.storage.get_user_by_username(username)
        if user is None:
            burn_password_check(password)
            logger.info("Failed login for %r", username)
            raise InvalidCredentials()
        if not verify_password(password, user.hashed_password):
            logger.info("Failed login for %r", username)
            raise InvalidCredentials()

        sid = self.sessions.create(user.id)
        logger.info("User %s logged in", user.id)
        return user, sid

    def logout(self, sid: str) -> None:
        self.sessions.destroy(sid)

    def _find_by_identifier(self, identifier: str) -> tuple[Optional[User], str]:
        identifier = identifier.strip()
        if "@" in identifier:
            return self.storage.get_user_by_email(identifier), "email"
        user = self.storage.get_user_by_phone(identifier)
        if user is not None:
            return user, "sms"
        # usernames are not accepted; fall back to email for odd inputs
        return self.storage.get_user_by_email(identifier), "email"

    def request_password_reset(self, identifier: str) -> Optional[PasswordReset]:
        """Issue a fresh reset token; returns None when no account matches."""
        user, channel = self._find_by_identifier(identifier)
        if user is None:
            logger.info("Password reset requested for unknown identifier")
            return None

        superseded = self.storage.invalidate_password_resets(user.id)
        if superseded:
            logger.info("Invalidated %d earlier reset token(s) for user %s", superseded, user.id)

        reset = self.storage.create_password_reset(
            user_id=user.id,
            token=new_reset_token(),
            expires_at=utcnow() + PASSWORD_RESET_TTL,
        )
        self.notifier.send_reset_token(user, reset, channel)
        return reset

    def verify_reset_token(self, token: str) -> PasswordReset:
        reset = self.storage.get_password_reset(token)
        if reset is None:
            raise TokenNotFound()
        if reset.used:
            raise TokenUsed()
        if as_utc(reset.expires_at) <= utcnow():
            raise TokenExpired()
        return reset

    def reset_password(self, token: str, new_password: str) -> User:
        reset = self.verify_reset_token(token)
        user = self.storage.redeem_password_reset(reset.id, reset.user_id, hash_password(new_password))
        self.sessions.destroy_for_user(user.id)
        logger.info("Password reset completed for user %s", user.id)
        return user
