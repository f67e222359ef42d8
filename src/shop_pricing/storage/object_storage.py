"""
Object storage contract for product images and a local filesystem backend.

Public URLs follow the hosted storage layout
``{base_url}/storage/v1/object/public/{bucket}/{path}`` so stored values
round-trip between backends.
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional, Union

logger = logging.getLogger(__name__)

PUBLIC_MARKER = '/storage/v1/object/public/'
OBJECT_MARKER = '/storage/v1/object/'


class StorageError(Exception):
    """An object storage call failed."""


class ObjectStorage(ABC):
    """Upload, public URL resolution and delete-by-path for one bucket."""

    bucket: str

    @abstractmethod
    def upload(self, path: str, data: bytes, overwrite: bool = False) -> str:
        """Store ``data`` at ``path`` and return the stored path."""

    @abstractmethod
    def get_public_url(self, path: str) -> str:
        """Public URL for a stored path."""

    @abstractmethod
    def delete(self, paths: Union[str, Iterable[str]]) -> list[str]:
        """Delete stored paths and return those that existed."""


class LocalObjectStorage(ObjectStorage):
    """Bucket stored as a directory tree under ``root/bucket``."""

    def __init__(self, root: Path, bucket: str, base_url: str = "http://localhost:8000"):
        self.root = Path(root)
        self.bucket = bucket
        self.base_url = base_url.rstrip('/')

    def _resolve(self, path: str) -> Path:
        relative = str(path).strip().lstrip('/')
        if not relative:
            raise StorageError("Object path is empty")
        bucket_dir = (self.root / self.bucket).resolve()
        target = (bucket_dir / relative).resolve()
        if bucket_dir != target and bucket_dir not in target.parents:
            raise StorageError(f"Object path escapes bucket: {path}")
        return target

    def upload(self, path: str, data: bytes, overwrite: bool = False) -> str:
        target = self._resolve(path)
        if target.exists() and not overwrite:
            raise StorageError(f"Object already exists: {self.bucket}/{path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Upload failed for {self.bucket}/{path}: {e}") from e
        logger.info("Uploaded %s/%s (%d bytes)", self.bucket, path, len(data))
        return str(path).lstrip('/')

    def get_public_url(self, path: str) -> str:
        return f"{self.base_url}{PUBLIC_MARKER}{self.bucket}/{str(path).lstrip('/')}"

    def delete(self, paths: Union[str, Iterable[str]]) -> list[str]:
        if isinstance(paths, str):
            paths = [paths]
        removed = []
        for path in paths:
            target = self._resolve(path)
            if target.exists():
                try:
                    target.unlink()
                except OSError as e:
                    raise StorageError(f"Delete failed for {self.bucket}/{path}: {e}") from e
                removed.append(path)
        return removed


def ensure_public_url(storage: ObjectStorage, value: Optional[str]) -> Optional[str]:
    """Normalize a stored image reference (path or URL) to a public URL."""
    if not value:
        return None
    if PUBLIC_MARKER in value:
        return value
    if OBJECT_MARKER in value:
        return value.replace(OBJECT_MARKER, PUBLIC_MARKER)
    if value.startswith('http://') or value.startswith('https://'):
        return value
    return storage.get_public_url(value)


def storage_path_from_url(bucket: str, url: str) -> str:
    """Object path inside ``bucket`` for a public URL; other values pass through."""
    marker = f"/{bucket}/"
    index = url.find(marker)
    if index >= 0:
        return url[index + len(marker):]
    return url
