# homefax/services/storage_service.py
from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from homefax.core.errors import InvalidRequest, NotFound
from homefax.models.stored_file import StoredFile
from homefax.services.content_store import ContentStore

logger = logging.getLogger(__name__)


class StorageService:
    """
    User file storage on the content store, indexed in the database.

    Files are private to their uploader: listing shows only the caller's files,
    and a download of someone else's file looks the same as a missing one.
    Report content is never served from here; that path goes through the ContentGate.
    """

    def __init__(self, store: ContentStore, *, max_upload_bytes: int):
        self.store = store
        self.max_upload_bytes = max_upload_bytes

    async def upload(
        self,
        db: Session,
        *,
        uploader_id: uuid.UUID,
        uploader_wallet: Optional[str],
        file_name: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> StoredFile:
        file_name = (file_name or "").strip()
        if not file_name:
            raise InvalidRequest("File name is required", operation="upload_file")
        if not data:
            raise InvalidRequest("File is empty", operation="upload_file", entity_id=file_name)
        if len(data) > self.max_upload_bytes:
            raise InvalidRequest(
                f"File exceeds {self.max_upload_bytes} bytes",
                operation="upload_file",
                entity_id=file_name,
            )

        stored = await self.store.upload(file_name, data, content_type)

        row = StoredFile(
            content_ref=stored.content_ref,
            file_name=file_name,
            content_type=content_type or "application/octet-stream",
            size_bytes=stored.size_bytes,
            uploader_id=uploader_id,
            uploader_wallet=uploader_wallet,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("[storage] uploaded id=%s ref=%s bytes=%d by=%s", row.id, row.content_ref, row.size_bytes, uploader_id)
        return row

    def list_files(self, db: Session, *, uploader_id: uuid.UUID) -> List[StoredFile]:
        return list(
            db.execute(
                select(StoredFile)
                .where(StoredFile.uploader_id == uploader_id)
                .order_by(StoredFile.created_at.desc(), StoredFile.file_name)
            ).scalars()
        )

    def get_file(self, db: Session, *, uploader_id: uuid.UUID, file_id: str) -> StoredFile:
        try:
            fid = uuid.UUID(str(file_id))
        except ValueError:
            raise NotFound("File not found", operation="download_file", entity_id=file_id)

        row = db.execute(select(StoredFile).where(StoredFile.id == fid)).scalar_one_or_none()
        if row is None or row.uploader_id != uploader_id:
            raise NotFound("File not found", operation="download_file", entity_id=file_id)
        return row

    async def download(self, db: Session, *, uploader_id: uuid.UUID, file_id: str) -> Tuple[StoredFile, bytes]:
        row = self.get_file(db, uploader_id=uploader_id, file_id=file_id)
        data = await self.store.resolve(row.content_ref)
        logger.info("[storage] downloaded id=%s bytes=%d", row.id, len(data))
        return row, data
