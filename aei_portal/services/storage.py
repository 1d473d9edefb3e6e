import logging
import time
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

from .. import config
from ..utils.error_handlers import FileTooLargeError, FileUploadError, get_error_message

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB


def upload_root() -> Path:
    return Path(config.UPLOAD_DIR)


def absolute_path(rel_path: str) -> Path:
    """Resolve a stored relative path, refusing anything that escapes UPLOAD_DIR."""
    root = upload_root().resolve()
    path = (root / rel_path).resolve()
    if root != path and root not in path.parents:
        raise FileUploadError("Invalid stored path")
    return path


def new_stored_filename(ext: str) -> str:
    # Timestamp + random, so concurrent uploads never collide.
    return f"{int(time.time() * 1000)}-{uuid4().hex[:16]}{ext.lower()}"


async def save_upload(upload: UploadFile, rel_path: str, *, max_bytes: int) -> int:
    """
    Stream an upload to UPLOAD_DIR/rel_path. Returns the byte count.
    Partial files are removed if the upload is too large or the write fails.
    """
    dest = absolute_path(rel_path)
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create upload directory {dest.parent}: {e}")
        raise FileUploadError("Failed to prepare storage")

    size = 0
    try:
        with open(dest, "wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise FileTooLargeError(
                        f"{get_error_message('file_too_large')} Maximum size is {max_bytes // (1024 * 1024)}MB."
                    )
                out.write(chunk)
    except FileTooLargeError:
        remove_stored_file(rel_path)
        raise
    except OSError as e:
        remove_stored_file(rel_path)
        logger.error(f"File save error for {rel_path}: {e}")
        raise FileUploadError("Failed to save file")
    finally:
        await upload.close()

    return size


def remove_stored_file(rel_path: str) -> bool:
    """Best-effort delete. Never raises; returns whether a file was removed."""
    try:
        path = absolute_path(rel_path)
        if path.exists():
            path.unlink()
            return True
    except (OSError, FileUploadError) as e:
        logger.warning(f"Could not remove stored file {rel_path}: {e}")
    return False
