# backend/services/object_storage.py
"""
Object Storage Service

Private bucket for exported PDFs, kept on the local filesystem. Files are
never served directly: downloads go through time-limited signed URLs whose
token is a JWT naming the object path.

Object paths look like "{user_id}/{cv_id}_{template}.pdf".
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath
from typing import List, Optional
from urllib.parse import urlencode

from jose import JWTError, jwt

from config import get_settings
from services.errors import InvalidSignedUrlError, ObjectNotFoundError, StorageError

logger = logging.getLogger(__name__)

DOWNLOAD_ROUTE = "/api/files/download"
TOKEN_SCOPE = "download"


def build_object_path(user_id: str, cv_id: str, template: str) -> str:
    return f"{user_id}/{cv_id}_{template}.pdf"


class LocalObjectStorage:
    """
    Bucket directory with upload, list, remove and signed URL support.

    Attributes:
        root: directory holding the bucket's objects
    """

    def __init__(
        self,
        storage_dir: Optional[str] = None,
        bucket: Optional[str] = None,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        public_base_url: Optional[str] = None
    ):
        settings = get_settings()
        self.root = Path(storage_dir or settings.storage_dir) / (bucket or settings.storage_bucket)
        self.root.mkdir(parents=True, exist_ok=True)

        self.secret_key = secret_key or settings.app_secret_key
        self.algorithm = algorithm or settings.token_algorithm
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")

        logger.info(f"LocalObjectStorage initialized at {self.root}")

    def _resolve(self, path: str) -> Path:
        parts = PurePosixPath(path).parts
        if not parts or path.startswith("/") or any(p in ("..", ".") for p in parts):
            raise StorageError(f"Invalid object path: {path!r}")
        return self.root.joinpath(*parts)

    def _write(self, path: str, data: bytes, upsert: bool) -> str:
        target = self._resolve(path)
        if target.exists() and not upsert:
            raise StorageError(f"Object already exists: {path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return path

    def _list(self, prefix: str, search: str) -> List[str]:
        folder = self._resolve(prefix)
        if not folder.is_dir():
            return []
        return sorted(p.name for p in folder.iterdir() if p.is_file() and search in p.name)

    def _remove(self, paths: List[str]) -> int:
        removed = 0
        for path in paths:
            target = self._resolve(path)
            if target.is_file():
                target.unlink()
                removed += 1
        return removed

    def _read(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise ObjectNotFoundError(f"Object not found: {path}")
        return target.read_bytes()

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str = "application/pdf",
        upsert: bool = True
    ) -> str:
        """
        Store an object.

        Args:
            path: object path inside the bucket
            data: file content
            content_type: MIME type (recorded in the log only; served as PDF)
            upsert: overwrite an existing object instead of failing

        Returns:
            The object path
        """
        await asyncio.to_thread(self._write, path, data, upsert)
        logger.info(f"Uploaded {path} ({len(data)} bytes, {content_type})")
        return path

    async def list(self, prefix: str, search: str = "") -> List[str]:
        """Names of the objects directly under prefix whose name contains search."""
        return await asyncio.to_thread(self._list, prefix, search)

    async def remove(self, paths: List[str]) -> int:
        """Delete objects; missing ones are ignored. Returns how many were removed."""
        return await asyncio.to_thread(self._remove, paths)

    async def read(self, path: str) -> bytes:
        return await asyncio.to_thread(self._read, path)

    def create_signed_url(self, path: str, expires_in: Optional[int] = None) -> str:
        """
        Time-limited download URL for an object.

        Args:
            path: object path inside the bucket
            expires_in: validity in seconds (default from settings, 1 hour)
        """
        self._resolve(path)
        ttl = expires_in if expires_in is not None else get_settings().signed_url_ttl_seconds
        claims = {
            "sub": path,
            "scope": TOKEN_SCOPE,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=ttl),
        }
        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        return f"{self.public_base_url}{DOWNLOAD_ROUTE}?{urlencode({'token': token})}"

    def verify_signed_token(self, token: str) -> str:
        """
        Check a download token and return the object path it grants.

        Raises:
            InvalidSignedUrlError: bad signature, expired, or wrong scope
        """
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidSignedUrlError(f"Invalid or expired download link: {e}") from e

        path = claims.get("sub")
        if claims.get("scope") != TOKEN_SCOPE or not path:
            raise InvalidSignedUrlError("Invalid download link")
        return path


# Singleton instance
_storage_instance: Optional[LocalObjectStorage] = None


def get_object_storage() -> LocalObjectStorage:
    """
    Get or create singleton LocalObjectStorage instance.

    Returns:
        Shared LocalObjectStorage instance
    """
    global _storage_instance

    if _storage_instance is None:
        _storage_instance = LocalObjectStorage()

    return _storage_instance


def reset_object_storage():
    """Reset the singleton instance (useful for testing)."""
    global _storage_instance
    _storage_instance = None
