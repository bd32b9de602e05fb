import logging
import secrets
import time
from pathlib import Path

from fastapi import UploadFile

from campus.core import config
from campus.core.errors import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _unique_name(field: str, filename: str) -> str:
    suffix = Path(filename).suffix.lower()
    return f"{field}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"


def save_upload(upload: UploadFile, field: str = "file", upload_dir: Path | None = None) -> str:
    """Stream ``upload`` to disk and return the stored path."""
    filename = upload.filename or ""
    if Path(filename).suffix.lower() not in config.ALLOWED_UPLOAD_EXTENSIONS:
        raise ValidationError.single(field, "File type not allowed")

    target_dir = upload_dir or config.UPLOAD_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / _unique_name(field, filename)

    written = 0
    try:
        with target.open("wb") as out:
            while chunk := upload.file.read(CHUNK_SIZE):
                written += len(chunk)
                if written > config.MAX_UPLOAD_BYTES:
                    raise ValidationError.single(field, "File exceeds the 10MB limit")
                out.write(chunk)
    except ValidationError:
        target.unlink(missing_ok=True)
        raise

    logger.info("Stored upload %s (%d bytes)", target.name, written)
    return str(target)


def discard_upload(path: str | None) -> None:
    """Remove a stored upload that no submission references any more."""
    if not path:
        return
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove upload %s", path, exc_info=True)
