from campus.db.base import Base
from campus.db.session import engine


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
