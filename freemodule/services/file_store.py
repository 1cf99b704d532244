"""
freemodule/services/file_store.py
Upload storage on local disk

- Only document types on the allow-list are accepted; anything else is
  rejected before a byte is written.
- Uploads are streamed to disk; crossing the size cap aborts the write and
  removes the partial file.
- Stored names are generated, never taken from the client. The extension
  follows the declared (allow-listed) content type, so the file is served
  back with that type whatever the client called it.
- A generated name that already exists is never overwritten; a new one is
  drawn instead.
- Deletion is best effort. Failures are logged and swallowed because they
  must never change the outcome of the database operation that caused them.
"""
import os
import time
import random
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from freemodule.errors import TooLargeError, UnsupportedTypeError, UploadError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"
CHUNK_SIZE = 64 * 1024
NAME_ATTEMPTS = 5

EXTENSIONS_BY_TYPE = {
    "application/pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "application/vnd.ms-powerpoint": ".ppt",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": ".pptx",
}


@dataclass(frozen=True)
class StoredFile:
    filename: str
    path: Path
    url: str
    size: int


def generate_filename(content_type: str) -> str:
    """`<epoch millis>-<random>` plus the extension registered for the content type"""
    ext = EXTENSIONS_BY_TYPE.get(content_type, "")
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9 - 1)}{ext}"


class FileStore:
    def __init__(self, upload_dir: str, max_bytes: int, allowed_types: Iterable[str]):
        self.root = Path(upload_dir).resolve()
        self.max_bytes = max_bytes
        self.allowed_types = frozenset(allowed_types)

    def ensure_directory(self) -> None:
        """Create the upload directory; failure here must abort startup."""
        os.makedirs(self.root, exist_ok=True)
        logger.info(f"Upload directory ready: {self.root}")

    def url_for(self, filename: str) -> str:
        return f"{URL_PREFIX}/{filename}"

    def path_for_url(self, url: Optional[str]) -> Optional[Path]:
        """
        Map a stored URL back to a path inside the upload directory.

        Only the final path component is used so a tampered URL cannot point
        outside the directory.
        """
        if not url:
            return None
        name = os.path.basename(url.replace("\\", "/"))
        if name in ("", ".", ".."):
            return None
        return self.root / name

    async def store(self, upload: UploadFile) -> StoredFile:
        """
        Write an uploaded document to disk.

        Raises UnsupportedTypeError, TooLargeError or UploadError. No file is
        left behind when an error is raised.
        """
        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        if content_type not in self.allowed_types:
            raise UnsupportedTypeError(
                "Unsupported file type. Allowed: PDF, DOC, DOCX, PPT, PPTX"
            )

        for _ in range(NAME_ATTEMPTS):
            filename = generate_filename(content_type)
            destination = self.root / filename
            try:
                total_size = await self._write(upload, destination)
                break
            except FileExistsError:
                logger.warning(f"Generated upload name {filename} already taken, retrying")
        else:
            logger.error(f"No free upload name after {NAME_ATTEMPTS} attempts")
            raise UploadError("File upload failed")

        if total_size == 0:
            await self._remove_path(destination)
            raise UploadError("Uploaded file is empty")

        logger.info(f"Stored upload {filename} ({total_size} bytes)")
        return StoredFile(filename=filename, path=destination, url=self.url_for(filename), size=total_size)

    async def _write(self, upload: UploadFile, destination: Path) -> int:
        """Stream the upload into a new file. An existing file is never opened."""
        total_size = 0
        try:
            async with aiofiles.open(destination, "xb") as f:
                while chunk := await upload.read(CHUNK_SIZE):
                    total_size += len(chunk)
                    if total_size > self.max_bytes:
                        raise TooLargeError(
                            f"File exceeds {self.max_bytes // (1024 * 1024)}MB limit"
                        )
                    await f.write(chunk)
        except FileExistsError:
            raise
        except TooLargeError:
            await self._remove_path(destination)
            raise
        except OSError as e:
            logger.error(f"Failed to write upload {destination.name}: {e}")
            await self._remove_path(destination)
            raise UploadError("File upload failed")
        return total_size

    async def delete(self, url: Optional[str]) -> bool:
        """Best-effort removal of a stored file. Returns True if a file was removed."""
        path = self.path_for_url(url)
        if path is None:
            return False
        removed = await self._remove_path(path)
        if removed:
            logger.info(f"Deleted stored file {path.name}")
        return removed

    async def delete_many(self, urls: Iterable[Optional[str]]) -> None:
        for url in urls:
            await self.delete(url)

    async def _remove_path(self, path: Path) -> bool:
        try:
            await aiofiles.os.remove(path)
            return True
        except FileNotFoundError:
            logger.warning(f"File already gone: {path.name}")
        except OSError as e:
            logger.warning(f"Could not delete file {path.name}: {e}")
        return False
