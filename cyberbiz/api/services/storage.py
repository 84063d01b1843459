"""
File Storage
Local disk storage for uploads.

Two disks live under STORAGE_PATH:
- public: served by the app at /storage/<path> (images, product files)
- private: only streamed through authorised endpoints (payment proofs, CVs)

Paths stored in the database are always relative to a disk root.
"""

import logging
import mimetypes
import re
import shutil
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from ..config import get_settings

logger = logging.getLogger(__name__)

PUBLIC = "public"
PRIVATE = "private"


@dataclass
class StoredFile:
    """Result of saving an upload."""

    path: str
    original_name: str
    size: int
    mime_type: Optional[str]


def safe_filename(name: str) -> str:
    """Strip directories and characters that do not belong in a path segment."""
    base = Path(name or "file").name
    base = re.sub(r"[^A-Za-z0-9._-]+", "_", base).strip("._")
    return base or "file"


def unique_filename(original_name: str) -> str:
    """`{random}_{unix time}_{name}` so repeated uploads never collide."""
    return f"{uuid.uuid4().hex[:13]}_{int(time.time())}_{safe_filename(original_name)}"


def file_extension(name: str) -> str:
    return Path(name or "").suffix.lower().lstrip(".")


class FileStorage:
    """
    Public/private disk storage rooted at a directory.
    """

    def __init__(self, root: Path, public_url_base: str):
        """
        Initialize storage.

        Args:
            root: Directory containing the public/ and private/ disks
            public_url_base: Absolute URL prefix of the public disk
                (e.g. http://localhost:8000/storage)
        """
        self.root = Path(root)
        self.public_url_base = public_url_base.rstrip("/")
        logger.info(f"File storage initialized at {self.root}")

    def disk_root(self, disk: str = PUBLIC) -> Path:
        if disk not in (PUBLIC, PRIVATE):
            raise ValueError(f"Unknown storage disk: {disk}")
        return self.root / disk

    def absolute_path(self, path: str, disk: str = PUBLIC) -> Path:
        """Resolve a relative path on a disk, refusing paths that escape it."""
        root = self.disk_root(disk).resolve()
        target = (root / path).resolve()
        if root != target and root not in target.parents:
            raise ValueError(f"Path escapes storage disk: {path}")
        return target

    def save_upload(
        self,
        upload: UploadFile,
        directory: str,
        filename: Optional[str] = None,
        disk: str = PUBLIC,
    ) -> StoredFile:
        """
        Copy an uploaded file onto a disk.

        Args:
            upload: Incoming multipart file
            directory: Relative directory on the disk
            filename: Target name (defaults to a unique name derived from the upload)
            disk: PUBLIC or PRIVATE

        Returns:
            StoredFile with the relative path
        """
        original_name = upload.filename or "file"
        name = filename or unique_filename(original_name)
        relative = f"{directory.strip('/')}/{name}"
        target = self.absolute_path(relative, disk)
        target.parent.mkdir(parents=True, exist_ok=True)

        upload.file.seek(0)
        with open(target, "wb") as out:
            shutil.copyfileobj(upload.file, out)

        size = target.stat().st_size
        mime_type = upload.content_type or mimetypes.guess_type(original_name)[0]
        logger.info(f"Stored upload {original_name} at {disk}:{relative} ({size} bytes)")
        return StoredFile(path=relative, original_name=original_name, size=size, mime_type=mime_type)

    def exists(self, path: Optional[str], disk: str = PUBLIC) -> bool:
        if not path:
            return False
        try:
            return self.absolute_path(path, disk).is_file()
        except ValueError:
            return False

    def delete(self, path: Optional[str], disk: str = PUBLIC) -> bool:
        """Delete a stored file. Returns False when it did not exist."""
        if not path:
            return False
        target = self.absolute_path(path, disk)
        if not target.is_file():
            return False
        target.unlink()
        logger.info(f"Deleted stored file {disk}:{path}")
        return True

    def url(self, path: Optional[str]) -> Optional[str]:
        """Public asset URL of a path on the public disk."""
        if not path:
            return None
        return f"{self.public_url_base}/{path.lstrip('/')}"

    def path_from_url(self, url: Optional[str]) -> Optional[str]:
        """
        Reverse of url(): the public-disk path behind one of our asset URLs.

        Returns None for external URLs.
        """
        if not url:
            return None
        prefix = f"{self.public_url_base}/"
        if url.startswith(prefix):
            return url[len(prefix):]
        # Relative form, e.g. "/storage/blogs/featured/x.png"
        if url.startswith("/storage/"):
            return url[len("/storage/"):]
        return None

    def delete_url(self, url: Optional[str]) -> bool:
        """Delete the local file behind an asset URL, ignoring external URLs."""
        path = self.path_from_url(url)
        if path is None:
            return False
        try:
            return self.delete(path, PUBLIC)
        except ValueError as e:
            logger.warning(f"Not deleting asset outside public disk {url}: {e}")
            return False

    def store_public_image(self, upload: UploadFile, directory: str) -> str:
        """Save an image on the public disk and return its asset URL."""
        stored = self.save_upload(upload, directory)
        return self.url(stored.path)


# Global storage instance
_storage: Optional[FileStorage] = None


def get_storage() -> FileStorage:
    """Get global file storage (singleton)."""
    global _storage
    if _storage is None:
        settings = get_settings()
        _storage = FileStorage(Path(settings.storage_path), f"{settings.app_url}/storage")
    return _storage


def reset_storage() -> None:
    """Reset storage (useful for testing)."""
    global _storage
    _storage = None
