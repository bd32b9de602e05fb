import asyncio
import logging
from datetime import timedelta
from typing import Callable, Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from campus.core.config import SESSION_TTL
from campus.core.security import new_session_id
from campus.db.base_class import as_utc, utcnow
from campus.models.user_session import UserSession

logger = logging.getLogger(__name__)


class SessionStore:
    """Server-side login sessions keyed by an opaque session id.

    Expiry is sliding: every successful ``get`` pushes ``expires_at`` out by
    the TTL. Expired rows read as absent and are removed by ``sweep_expired``.
    """

    def __init__(self, db: Session, ttl: timedelta = SESSION_TTL):
        self.db = db
        self.ttl = ttl

    def create(self, user_id: int) -> str:
        sid = new_session_id()
        self.db.add(UserSession(sid=sid, user_id=user_id, expires_at=utcnow() + self.ttl))
        self.db.commit()
        return sid

    def get(self, sid: str) -> Optional[int]:
        row = self.db.get(UserSession, sid)
        if row is None:
            return None
        if as_utc(row.expires_at) <= utcnow():
            self.db.delete(row)
            self.db.commit()
            return None
        row.expires_at = utcnow() + self.ttl
        self.db.commit()
        return row.user_id

    def destroy(self, sid: str) -> None:
        self.db.execute(delete(UserSession).where(UserSession.sid == sid))
        self.db.commit()

    def destroy_for_user(self, user_id: int) -> int:
        result = self.db.execute(delete(UserSession).where(UserSession.user_id == user_id))
        self.db.commit()
        return result.rowcount or 0

    def sweep_expired(self) -> int:
        result = self.db.execute(delete(UserSession).where(UserSession.expires_at <= utcnow()))
        self.db.commit()
        return result.rowcount or 0


def sweep_once(session_factory: Callable[[], Session]) -> int:
    db = session_factory()
    try:
        removed = SessionStore(db).sweep_expired()
    finally:
        db.close()
    if removed:
        logger.info("Swept %d expired session(s)", removed)
    return removed


async def run_session_sweeper(session_factory: Callable[[], Session], interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await run_in_threadpool(sweep_once, session_factory)
        except Exception:
            logger.exception("Session sweep failed")
