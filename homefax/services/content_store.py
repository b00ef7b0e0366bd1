from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from homefax.core.config import Settings
from homefax.core.errors import ContentUnavailable, NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredContent:
    content_ref: str
    size_bytes: int


class ContentStore(ABC):
    """
    Resolves an opaque content reference into bytes, and stores new content.
    Report content is only resolved after the ContentGate grants it.
    """

    @abstractmethod
    async def resolve(self, content_ref: str) -> bytes: ...

    @abstractmethod
    async def upload(self, file_name: str, data: bytes, content_type: Optional[str] = None) -> StoredContent: ...

    async def aclose(self) -> None:
        return None


class GatewayContentStore(ContentStore):
    """
    Content-addressed gateway (IPFS-style): GET {base_url}/{ref}.
    A "cid:" / "ipfs://" prefix on the reference is stripped for the URL.

    Uploads go to an IPFS HTTP API (POST {api_url}/api/v0/add, pinned) and come
    back as "ipfs://<cid>". Without an api_url the store is read-only.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_url = api_url.rstrip("/") if api_url else None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["GatewayContentStore"]:
        if not settings.content_gateway_url:
            return None
        return cls(
            settings.content_gateway_url,
            api_url=settings.content_api_url,
            timeout=settings.content_fetch_timeout_seconds,
        )

    @staticmethod
    def _path(content_ref: str) -> str:
        for prefix in ("ipfs://", "cid:"):
            if content_ref.startswith(prefix):
                return content_ref[len(prefix):]
        return content_ref

    async def resolve(self, content_ref: str) -> bytes:
        url = f"{self.base_url}/{self._path(content_ref)}"
        try:
            r = await self._client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("[content-store] fetch failed ref=%s err=%s", content_ref, exc)
            raise ContentUnavailable("Content store unreachable.", operation="resolve_content", entity_id=content_ref, cause=exc)

        if r.status_code == 404:
            raise NotFound("Content not found in store.", operation="resolve_content", entity_id=content_ref)
        if r.status_code >= 400:
            raise ContentUnavailable(
                f"Content store returned {r.status_code}.",
                operation="resolve_content",
                entity_id=content_ref,
            )
        logger.info("[content-store] resolved ref=%s bytes=%d", content_ref, len(r.content))
        return r.content

    async def upload(self, file_name: str, data: bytes, content_type: Optional[str] = None) -> StoredContent:
        if not self.api_url:
            raise ContentUnavailable("Content store is read-only.", operation="upload_content", entity_id=file_name)

        files = {"file": (file_name, data, content_type or "application/octet-stream")}
        try:
            r = await self._client.post(f"{self.api_url}/api/v0/add", params={"pin": "true"}, files=files)
        except httpx.HTTPError as exc:
            logger.warning("[content-store] upload failed file=%s err=%s", file_name, exc)
            raise ContentUnavailable("Content store unreachable.", operation="upload_content", entity_id=file_name, cause=exc)

        if r.status_code >= 400:
            raise ContentUnavailable(
                f"Content store returned {r.status_code}.",
                operation="upload_content",
                entity_id=file_name,
            )

        cid = _added_cid(r.text)
        if not cid:
            raise ContentUnavailable("Content store returned no content id.", operation="upload_content", entity_id=file_name)

        logger.info("[content-store] stored file=%s cid=%s bytes=%d", file_name, cid, len(data))
        return StoredContent(content_ref=f"ipfs://{cid}", size_bytes=len(data))

    async def aclose(self) -> None:
        await self._client.aclose()


def _added_cid(body: str) -> Optional[str]:
    # /api/v0/add answers in NDJSON; the last object describes the added root
    last = None
    for line in body.strip().splitlines():
        try:
            obj = json.loads(line)
        except ValueError:
            continue
        if isinstance(obj, dict):
            last = obj
    if last is None:
        return None
    return str(last.get("Hash") or "").strip() or None
