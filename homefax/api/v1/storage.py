# homefax/api/v1/storage.py
from __future__ import annotations

import base64
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from homefax.core.auth_deps import Principal, get_current_principal, require_wallet_address
from homefax.core.config import Settings, get_settings
from homefax.core.deps_ledger import get_storage_service
from homefax.db.session import get_db
from homefax.models.stored_file import StoredFile
from homefax.schemas.storage import (
    ContractAddressResponse,
    FileDownloadResponse,
    FileListResponse,
    FileUploadResponse,
    StoredFileOut,
)
from homefax.services.storage_service import StorageService

router = APIRouter(prefix="/storage")


def _file_out(f: StoredFile) -> StoredFileOut:
    return StoredFileOut(
        fileId=str(f.id),
        fileName=f.file_name,
        contentRef=f.content_ref,
        contentType=f.content_type,
        sizeBytes=f.size_bytes,
        createdAtIso=f.created_at.isoformat() if f.created_at else None,
    )


@router.post("/upload", response_model=FileUploadResponse, status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    fileName: Optional[str] = Form(default=None),
    wallet: str = Depends(require_wallet_address),
    principal: Principal = Depends(get_current_principal),
    svc: StorageService = Depends(get_storage_service),
    db: Session = Depends(get_db),
):
    data = await file.read()
    row = await svc.upload(
        db,
        uploader_id=uuid.UUID(principal.identity_id),
        uploader_wallet=wallet,
        file_name=fileName or file.filename or "",
        data=data,
        content_type=file.content_type,
    )
    return FileUploadResponse(fileId=str(row.id), fileName=row.file_name, contentRef=row.content_ref)


@router.get("/download/{fileId}", response_model=FileDownloadResponse)
async def download_file(
    fileId: str,
    wallet: str = Depends(require_wallet_address),
    principal: Principal = Depends(get_current_principal),
    svc: StorageService = Depends(get_storage_service),
    db: Session = Depends(get_db),
):
    row, data = await svc.download(db, uploader_id=uuid.UUID(principal.identity_id), file_id=fileId)
    return FileDownloadResponse(
        fileId=str(row.id),
        fileName=row.file_name,
        contentType=row.content_type,
        content=base64.b64encode(data).decode("ascii"),
    )


@router.get("/files", response_model=FileListResponse)
def list_files(
    wallet: str = Depends(require_wallet_address),
    principal: Principal = Depends(get_current_principal),
    svc: StorageService = Depends(get_storage_service),
    db: Session = Depends(get_db),
):
    files = svc.list_files(db, uploader_id=uuid.UUID(principal.identity_id))
    return FileListResponse(files=[_file_out(f) for f in files])


@router.get("/contract-address", response_model=ContractAddressResponse)
def contract_address(
    wallet: str = Depends(require_wallet_address),
    settings: Settings = Depends(get_settings),
):
    return ContractAddressResponse(contractAddress=settings.content_store_contract_address)
