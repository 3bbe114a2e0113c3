import json

import httpx
import pytest

from juriscloud.gateway.errors import NotFoundError, StorageError
from juriscloud.gateway.storage import SupabaseStorageBucket

PDF = "%PDF-1.4 pièce".encode()


async def test_local_bucket_roundtrip(bucket):
    await bucket.upload("u/c/Contrats/a-contrat.pdf", PDF, "application/pdf")
    assert await bucket.download("u/c/Contrats/a-contrat.pdf") == PDF

    with pytest.raises(StorageError):
        await bucket.upload("u/c/Contrats/a-contrat.pdf", b"autre")
    await bucket.upload("u/c/Contrats/a-contrat.pdf", b"autre", upsert=True)
    assert await bucket.download("u/c/Contrats/a-contrat.pdf") == b"autre"

    await bucket.remove(["u/c/Contrats/a-contrat.pdf"])
    with pytest.raises(NotFoundError):
        await bucket.download("u/c/Contrats/a-contrat.pdf")


async def test_local_bucket_rejects_escaping_paths(bucket):
    with pytest.raises(StorageError):
        await bucket.upload("../secret.pdf", PDF)
    with pytest.raises(StorageError):
        await bucket.upload("/etc/passwd", PDF)


async def test_signed_url_needs_an_existing_object(bucket):
    with pytest.raises(NotFoundError):
        await bucket.create_signed_url("u/c/Autres/absent.pdf", 60)


def _hosted(handler):
    return SupabaseStorageBucket(
        "case-documents",
        url="https://demo.supabase.co/",
        service_role_key="service-key",
        transport=httpx.MockTransport(handler),
    )


async def test_hosted_bucket_requests():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.startswith("/storage/v1/object/sign/"):
            return httpx.Response(200, json={"signedURL": "/object/sign/case-documents/u/c/x.pdf?token=abc"})
        if request.method == "GET":
            return httpx.Response(200, content=PDF)
        return httpx.Response(200, json={"Key": "case-documents/u/c/x.pdf"})

    store = _hosted(handler)
    assert await store.upload("u/c/x.pdf", PDF, "application/pdf", upsert=True) == "u/c/x.pdf"
    assert await store.download("u/c/x.pdf") == PDF
    url = await store.create_signed_url("u/c/x.pdf", 60)
    await store.remove(["u/c/x.pdf"])

    assert url == "https://demo.supabase.co/storage/v1/object/sign/case-documents/u/c/x.pdf?token=abc"
    upload = seen[0]
    assert upload.url.path == "/storage/v1/object/case-documents/u/c/x.pdf"
    assert upload.headers["x-upsert"] == "true"
    assert upload.headers["authorization"] == "Bearer service-key"
    assert json.loads(seen[2].content) == {"expiresIn": 60}
    assert seen[3].method == "DELETE"
    assert json.loads(seen[3].content) == {"prefixes": ["u/c/x.pdf"]}


async def test_hosted_bucket_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(404, json={"error": "not_found"})
        return httpx.Response(500, text="boom")

    store = _hosted(handler)
    with pytest.raises(NotFoundError):
        await store.download("u/c/x.pdf")
    with pytest.raises(StorageError):
        await store.upload("u/c/x.pdf", PDF)


async def test_hosted_bucket_network_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(StorageError):
        await _hosted(handler).download("u/c/x.pdf")
