from fastapi import Depends
from sqlalchemy.orm import Session

from campus.db.session import SessionLocal
from campus.db.session_store import SessionStore
from campus.db.storage import DatabaseStorage
from campus.services.ai import AIClient


# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_storage(db: Session = Depends(get_db)) -> DatabaseStorage:
    return DatabaseStorage(db)


def get_session_store(db: Session = Depends(get_db)) -> SessionStore:
    return SessionStore(db)


_ai_client = AIClient()


def get_ai_client() -> AIClient:
    return _ai_client
