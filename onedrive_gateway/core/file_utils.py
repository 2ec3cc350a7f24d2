"""Temporary storage for received multipart uploads."""

import contextlib
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

from onedrive_gateway.core.logging import get_logger

logger = get_logger(__name__)


class UploadTooLargeError(Exception):
    """Raised when an incoming upload exceeds the configured limit."""

    def __init__(self, max_size_bytes: int):
        max_mb = max_size_bytes / (1024 * 1024)
        super().__init__(f"File too large. Maximum size is {max_mb:.0f}MB")
        self.max_size_bytes = max_size_bytes


async def save_upload_to_temp(
    file: UploadFile,
    upload_dir: str | Path,
    max_size_bytes: int,
    chunk_size: int = 64 * 1024,
) -> Path:
    """
    Stream an upload into a uniquely named file inside ``upload_dir``.

    The temp file's base name is a random hex string without extension;
    it becomes the stored OneDrive file name. Size is enforced while
    streaming so oversized bodies never land on disk in full.

    IMPORTANT: Caller is responsible for deleting the returned file
    (see remove_temp_file).

    Args:
        file: FastAPI UploadFile object
        upload_dir: Directory for temp files (created if missing)
        max_size_bytes: Maximum allowed file size in bytes
        chunk_size: Size of chunks to read (default 64KB)

    Returns:
        Path of the written temp file

    Raises:
        UploadTooLargeError: If the file exceeds max_size_bytes
    """
    # Check Content-Length header if available (fast path)
    if file.size is not None and file.size > max_size_bytes:
        raise UploadTooLargeError(max_size_bytes)

    directory = Path(upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    temp_path = directory / uuid4().hex

    total_size = 0
    try:
        with temp_path.open("wb") as out:
            while True:
                chunk = await file.read(chunk_size)
                if not chunk:
                    break

                total_size += len(chunk)
                if total_size > max_size_bytes:
                    raise UploadTooLargeError(max_size_bytes)

                out.write(chunk)
    except BaseException:
        remove_temp_file(temp_path)
        raise

    logger.debug("upload_spooled", path=str(temp_path), size=total_size)
    return temp_path


def remove_temp_file(path: str | Path | None) -> None:
    """Delete a temp upload, logging instead of failing if it is gone."""
    if path is None:
        return
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("temp_file_cleanup_failed", path=str(path), error=str(e))


@contextlib.asynccontextmanager
async def received_upload(file: UploadFile, upload_dir: str | Path, max_size_bytes: int):
    """Save an upload to a temp file for the duration of the block."""
    temp_path = await save_upload_to_temp(file, upload_dir, max_size_bytes)
    try:
        yield temp_path
    finally:
        remove_temp_file(temp_path)
