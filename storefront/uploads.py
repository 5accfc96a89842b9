"""
Local disk storage for admin uploads (product images, PDFs, audio).
"""

from __future__ import annotations

import logging
import os
import random
import re
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional

from storefront.errors import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|gif|pdf|mp3|wav")
DEFAULT_MAX_BYTES = 10 * 1024 * 1024


@dataclass
class StoredFile:
    filename: str
    url: str
    size: int
    originalName: Optional[str] = None
    created: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


def is_allowed(original_name: str, content_type: Optional[str]) -> bool:
    """Both the extension and the MIME type must name an allowed format."""
    extension = os.path.splitext(original_name or "")[1].lower()
    return bool(ALLOWED_TYPES.search(extension)) and bool(
        ALLOWED_TYPES.search(content_type or "")
    )


def resolve_file(directory: str, filename: str) -> str:
    """Return the path of an existing file directly inside ``directory``."""
    # Only bare names are addressable, never paths.
    if not filename or os.path.basename(filename) != filename or filename in (".", ".."):
        raise NotFoundError("File not found")
    path = os.path.join(directory, filename)
    if not os.path.isfile(path):
        raise NotFoundError("File not found")
    return path


def unique_name(original_name: str) -> str:
    extension = os.path.splitext(original_name or "")[1]
    return f"{int(time.time() * 1000)}-{round(random.random() * 1e9)}{extension}"


class UploadManager:
    def __init__(
        self,
        upload_dir: str,
        *,
        url_prefix: str = "/api/uploads",
        max_bytes: int = DEFAULT_MAX_BYTES,
    ):
        self.upload_dir = upload_dir
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    def url_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    def store(
        self, data: bytes, original_name: str, content_type: Optional[str]
    ) -> StoredFile:
        if not is_allowed(original_name, content_type):
            raise ValidationError("Invalid file type")
        if len(data) > self.max_bytes:
            raise ValidationError("File too large")

        filename = unique_name(original_name)
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            with open(os.path.join(self.upload_dir, filename), "wb") as f:
                f.write(data)
        except OSError as exc:
            logger.exception("Failed to store upload %s: %s", original_name, exc)
            raise StorageError("Failed to store file")
        logger.info("Stored upload %s as %s", original_name, filename)
        return StoredFile(
            filename=filename,
            url=self.url_for(filename),
            size=len(data),
            originalName=original_name,
        )

    def list_files(self) -> list[StoredFile]:
        if not os.path.isdir(self.upload_dir):
            return []
        files: list[StoredFile] = []
        for filename in sorted(os.listdir(self.upload_dir)):
            path = os.path.join(self.upload_dir, filename)
            if not os.path.isfile(path):
                continue
            stats = os.stat(path)
            created = getattr(stats, "st_birthtime", stats.st_ctime)
            files.append(
                StoredFile(
                    filename=filename,
                    url=self.url_for(filename),
                    size=stats.st_size,
                    created=datetime.fromtimestamp(created, timezone.utc).isoformat(),
                )
            )
        return files

    def resolve(self, filename: str) -> str:
        return resolve_file(self.upload_dir, filename)

    def delete(self, filename: str) -> None:
        path = self.resolve(filename)
        os.remove(path)
        logger.info("Deleted upload %s", filename)
