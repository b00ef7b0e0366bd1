import httpx
import pytest

from homefax.core.config import get_settings
from homefax.core.errors import ContentUnavailable, NotFound
from homefax.services.content_store import GatewayContentStore


def store_with(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GatewayContentStore("https://gateway.test/ipfs/", client=client)


@pytest.mark.asyncio
async def test_resolves_prefixed_reference():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, content=b"report body")

    store = store_with(handler)
    try:
        assert await store.resolve("ipfs://QmAbc") == b"report body"
        assert await store.resolve("cid:QmDef") == b"report body"
    finally:
        await store.aclose()

    assert seen == ["https://gateway.test/ipfs/QmAbc", "https://gateway.test/ipfs/QmDef"]


@pytest.mark.asyncio
async def test_missing_content_is_not_found():
    store = store_with(lambda request: httpx.Response(404))

    with pytest.raises(NotFound):
        await store.resolve("QmGone")


@pytest.mark.asyncio
async def test_gateway_error_is_content_unavailable():
    store = store_with(lambda request: httpx.Response(503))

    with pytest.raises(ContentUnavailable):
        await store.resolve("QmBusy")


@pytest.mark.asyncio
async def test_unreachable_gateway_is_content_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    store = store_with(handler)

    with pytest.raises(ContentUnavailable) as ei:
        await store.resolve("QmAbc")

    assert isinstance(ei.value.cause, httpx.ConnectError)


def test_not_configured_without_gateway_url():
    assert GatewayContentStore.from_settings(get_settings()) is None


@pytest.mark.asyncio
async def test_upload_posts_multipart_and_pins():
    seen = []

    def handler(request):
        seen.append(request)
        body = '{"Name":"report.pdf","Hash":"QmLeaf","Size":"20"}\n{"Name":"","Hash":"QmRoot","Size":"31"}\n'
        return httpx.Response(200, text=body)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = GatewayContentStore("https://gateway.test/ipfs/", api_url="https://ipfs.test:5001/", client=client)

    stored = await store.upload("report.pdf", b"%PDF-1.7 body", "application/pdf")

    assert stored.content_ref == "ipfs://QmRoot"
    assert stored.size_bytes == len(b"%PDF-1.7 body")

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/v0/add"
    assert request.url.params["pin"] == "true"
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b'filename="report.pdf"' in request.content
    assert b"%PDF-1.7 body" in request.content


@pytest.mark.asyncio
async def test_upload_without_api_url_is_content_unavailable():
    store = store_with(lambda request: httpx.Response(200))

    with pytest.raises(ContentUnavailable):
        await store.upload("a.txt", b"x")


@pytest.mark.asyncio
async def test_upload_without_hash_is_content_unavailable():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, text="oops")))
    store = GatewayContentStore("https://gateway.test/ipfs/", api_url="https://ipfs.test:5001", client=client)

    with pytest.raises(ContentUnavailable):
        await store.upload("a.txt", b"x")
