# Import every model so Base.metadata knows all tables (used by init_db and alembic).
from campus.db.base_class import Base  # noqa: F401
from campus.models import (  # noqa: F401
    ai_artifact,
    assignment,
    course,
    enrollment,
    password_reset,
    submission,
    user,
    user_session,
)
