"""
File Storage Infrastructure
===========================

Local disk storage for complaint attachments and knowledge documents.
Files are served read-only by the application under ``/uploads``.
"""

import asyncio
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from campusdesk.core import ValidationException
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

PUBLIC_PREFIX = "/uploads"


@dataclass
class StoredFile:
    """A file written to storage."""
    name: str
    path: Path
    url: str
    size: int


def file_extension(filename: str) -> str:
    return Path(filename or "").suffix.lower()


def ensure_allowed_extension(filename: str, blocked: Iterable[str]) -> None:
    """Reject executable and script attachments."""
    ext = file_extension(filename)
    if ext and ext in {b.lower() for b in blocked}:
        raise ValidationException(
            f"File type '{ext}' is not allowed for security reasons.",
            {"filename": filename}
        )


class LocalFileStorage:
    """Stores files under ``base_dir/<subdir>`` with generated unique names."""

    def __init__(self, base_dir: Path, subdir: str = ""):
        self._base_dir = Path(base_dir)
        self._subdir = subdir.strip("/")

    @property
    def directory(self) -> Path:
        return self._base_dir / self._subdir if self._subdir else self._base_dir

    def unique_name(self, original_name: str, prefix: str = "file") -> str:
        timestamp = int(time.time() * 1000)
        return f"{prefix}-{timestamp}-{secrets.randbelow(10**9)}{file_extension(original_name)}"

    def url_for(self, name: str) -> str:
        if self._subdir:
            return f"{PUBLIC_PREFIX}/{self._subdir}/{name}"
        return f"{PUBLIC_PREFIX}/{name}"

    async def save(self, content: bytes, original_name: str, prefix: str = "file") -> StoredFile:
        name = self.unique_name(original_name, prefix)
        path = self.directory / name

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

        await asyncio.to_thread(_write)
        logger.info("File stored", extra={"file_name": name, "size": len(content)})
        return StoredFile(name=name, path=path, url=self.url_for(name), size=len(content))

    async def delete(self, name: Optional[str]) -> bool:
        """Delete a stored file. A missing file is not an error."""
        if not name:
            return False
        path = self.directory / Path(name).name
        try:
            await asyncio.to_thread(path.unlink)
            return True
        except FileNotFoundError:
            logger.info("File already absent", extra={"file_name": name})
            return False
