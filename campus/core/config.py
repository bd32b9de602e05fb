import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


DEBUG = _env_bool("LMS_DEBUG")
LOG_LEVEL = os.getenv("LMS_LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("LMS_DATABASE_URL", f"sqlite:///{BASE_DIR}/campus.db")

# Sessions
SESSION_COOKIE_NAME = "lms_session"
SESSION_TTL = timedelta(minutes=int(os.getenv("LMS_SESSION_TTL_MINUTES", "60")))
SESSION_SWEEP_INTERVAL_SECONDS = int(os.getenv("LMS_SESSION_SWEEP_SECONDS", "120"))

# Passwords
BCRYPT_ROUNDS = int(os.getenv("LMS_BCRYPT_ROUNDS", "12"))
PASSWORD_RESET_TTL = timedelta(hours=1)
# DEV ONLY: echo reset tokens back to the requester instead of delivering them out-of-band.
EXPOSE_RESET_TOKEN = _env_bool("LMS_EXPOSE_RESET_TOKEN")

# Uploads
UPLOAD_DIR = Path(os.getenv("LMS_UPLOAD_DIR", str(BASE_DIR / "uploads")))
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_UPLOAD_EXTENSIONS = frozenset(
    {".jpeg", ".jpg", ".png", ".gif", ".pdf", ".doc", ".docx", ".txt", ".zip", ".rar"}
)

# AI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
AI_MODEL = os.getenv("LMS_AI_MODEL", "gpt-4o")
AI_TIMEOUT_SECONDS = float(os.getenv("LMS_AI_TIMEOUT_SECONDS", "30"))
AI_MAX_RETRIES = int(os.getenv("LMS_AI_MAX_RETRIES", "2"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("LMS_CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
