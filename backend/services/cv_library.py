# backend/services/cv_library.py
"""
CV Library Service

Everything a user does with CVs after generation: look one up, browse the
history, see dashboard stats, export to PDF and delete.
"""

import asyncio
import logging
from typing import Any, Dict, List

from config import get_settings
from models import CvRecord
from services.errors import CvNotFoundError
from services.object_storage import LocalObjectStorage, build_object_path
from services.outcome import SoftResult
from services.pdf_renderer import render_cv_pdf
from services.stores import CvStore

logger = logging.getLogger(__name__)

MAX_HISTORY = 50


class CvLibrary:
    def __init__(self, cvs: CvStore, storage: LocalObjectStorage):
        self.cvs = cvs
        self.storage = storage

    async def get(self, user_id: str, cv_id: str) -> CvRecord:
        """
        Raises:
            CvNotFoundError: no such CV, or it belongs to someone else
        """
        record = await self.cvs.get(user_id, cv_id)
        if record is None:
            raise CvNotFoundError()
        return record

    async def history(self, user_id: str, limit: int = 20) -> List[CvRecord]:
        """Newest first, at most MAX_HISTORY records."""
        return await self.cvs.list_for_user(user_id, max(1, min(limit, MAX_HISTORY)))

    async def stats(self, user_id: str) -> Dict[str, Any]:
        return await self.cvs.stats_for_user(user_id)

    async def export(self, user_id: str, cv_id: str, template: str, language: str) -> Dict[str, Any]:
        """
        Render a stored CV to PDF, upload it and sign a download link.

        The template may differ from the one chosen at generation time, so
        one CV can be exported in every layout. Re-exporting overwrites the
        previous file for the same CV and template.

        Returns:
            {"url", "path", "expires_in"}
        """
        record = await self.get(user_id, cv_id)

        pdf_bytes = await asyncio.to_thread(render_cv_pdf, record.generated_content, template, language)
        path = build_object_path(user_id, record.id, template)
        await self.storage.upload(path, pdf_bytes, content_type="application/pdf", upsert=True)

        ttl = get_settings().signed_url_ttl_seconds
        url = self.storage.create_signed_url(path, expires_in=ttl)
        logger.info(f"CV {record.id} exported as {template} for user {user_id}")
        return {"url": url, "path": path, "expires_in": ttl}

    async def _cleanup_files(self, user_id: str, cv_id: str) -> SoftResult[int]:
        try:
            names = await self.storage.list(user_id, search=cv_id)
            removed = await self.storage.remove([f"{user_id}/{name}" for name in names]) if names else 0
            return SoftResult.success(removed)
        except Exception as e:
            logger.warning(f"Could not clean up files of CV {cv_id}: {e}")
            return SoftResult.failure(e)

    async def delete(self, user_id: str, cv_id: str) -> SoftResult[int]:
        """
        Delete a CV, then its exported PDFs.

        The record deletion is authoritative; file cleanup is best-effort
        and its failure is only reported in the returned SoftResult.

        Raises:
            CvNotFoundError: no such CV, or it belongs to someone else
        """
        deleted = await self.cvs.delete(user_id, cv_id)
        if not deleted:
            raise CvNotFoundError()

        cleanup = await self._cleanup_files(user_id, cv_id)
        logger.info(f"CV {cv_id} deleted for user {user_id} (files removed: {cleanup.value_or(0)})")
        return cleanup
