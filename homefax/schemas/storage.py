from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class StoredFileOut(BaseModel):
    fileId: str
    fileName: str
    contentRef: str = Field(..., description="Content store reference, e.g. ipfs://<cid>")
    contentType: str
    sizeBytes: int
    createdAtIso: Optional[str] = None


class FileUploadResponse(BaseModel):
    success: bool = True
    fileId: str
    fileName: str
    contentRef: str
    message: str = "File uploaded successfully"


class FileDownloadResponse(BaseModel):
    success: bool = True
    fileId: str
    fileName: str
    contentType: str
    content: str = Field(..., description="File bytes, base64")
    message: str = "File downloaded successfully"


class FileListResponse(BaseModel):
    success: bool = True
    files: List[StoredFileOut]


class ContractAddressResponse(BaseModel):
    success: bool = True
    contractAddress: Optional[str] = None
