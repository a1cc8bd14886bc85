"""
Object storage collaborator.

Buckets are directories under ``settings.storage_dir``; objects are files
inside them. Public URLs point at the static mount that serves the storage
root. All methods return ``ServiceResult`` and never raise.
"""

import asyncio
import logging
from pathlib import Path

from asthmacare.app.core.config import settings
from asthmacare.app.core.result import ServiceResult, normalize_errors

logger = logging.getLogger(__name__)


class LocalObjectStorage:
    """Filesystem-backed bucket store."""

    def __init__(self, root: str | Path | None = None, public_url: str | None = None):
        """
        Initialize the store.

        Args:
            root: Storage root directory. If None, uses setting from config.
            public_url: URL prefix of served objects. If None, uses setting from config.
        """
        self.root = Path(root or settings.storage_dir)
        self.public_url = (public_url or settings.storage_public_url).rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        """Map bucket/path to a file below the root, refusing traversal."""
        parts = [bucket, *path.split("/")]
        if any(part in ("", ".", "..") for part in parts):
            raise ValueError(f"Invalid object path: {bucket}/{path}")
        return self.root.joinpath(*parts)

    @normalize_errors("storage.upload")
    async def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str | None = None,
    ) -> ServiceResult[dict]:
        """
        Store an object. Existing objects are never overwritten.

        Returns:
            ServiceResult with ``{"path": path}`` on success
        """
        target = self._resolve(bucket, path)
        if target.exists():
            return ServiceResult.fail("The resource already exists")

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "xb") as f:
                f.write(data)

        await asyncio.to_thread(_write)
        logger.info(f"[STORAGE] Stored {bucket}/{path} ({len(data)} bytes, {content_type})")
        return {"path": path}

    def get_public_url(self, bucket: str, path: str) -> str:
        """Public URL of an object. Does not check that the object exists."""
        return f"{self.public_url}/{bucket}/{path}"

    @normalize_errors("storage.download")
    async def download(self, bucket: str, path: str) -> bytes:
        """Read an object's bytes."""
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise FileNotFoundError("Object not found")
        return await asyncio.to_thread(target.read_bytes)

    @normalize_errors("storage.delete")
    async def delete(self, bucket: str, path: str) -> ServiceResult[dict]:
        """Remove an object. Removing a missing object is a failure."""
        target = self._resolve(bucket, path)
        if not target.is_file():
            return ServiceResult.fail("Object not found")
        await asyncio.to_thread(target.unlink)
        logger.info(f"[STORAGE] Deleted {bucket}/{path}")
        return {"path": path}
