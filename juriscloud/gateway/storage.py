"""Object storage buckets for case documents."""

import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import quote

import aiofiles
import aiofiles.os
import httpx

from juriscloud.auth.utils import create_storage_token
from juriscloud.config import (
    DOCUMENTS_BUCKET,
    HTTP_TIMEOUT,
    PUBLIC_BASE_URL,
    STORAGE_BACKEND,
    STORAGE_DIR,
    SUPABASE_SERVICE_ROLE_KEY,
    SUPABASE_URL,
)
from juriscloud.gateway.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)


class StorageBucket(ABC):
    """One named bucket of stored objects addressed by slash separated paths."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None, upsert: bool = False) -> str:
        """Store ``content`` at ``path`` and return the path."""

    @abstractmethod
    async def download(self, path: str) -> bytes:
        ...

    @abstractmethod
    async def create_signed_url(self, path: str, expires_in: int) -> str:
        ...

    @abstractmethod
    async def remove(self, paths: List[str]) -> None:
        ...


def _check_path(path: str) -> str:
    parts = path.split("/")
    if not path or path.startswith("/") or any(part in ("", ".", "..") for part in parts):
        raise StorageError(f"Invalid object path: {path}", code="invalid_path")
    return path


class LocalStorageBucket(StorageBucket):
    """Bucket stored under a directory on the local filesystem."""

    def __init__(self, name: str, root: str = STORAGE_DIR, public_base_url: str = PUBLIC_BASE_URL):
        super().__init__(name)
        self.root = os.path.abspath(os.path.join(root, name))
        self.public_base_url = public_base_url.rstrip("/")

    def _full_path(self, path: str) -> str:
        return os.path.join(self.root, *_check_path(path).split("/"))

    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None, upsert: bool = False) -> str:
        full_path = self._full_path(path)
        if not upsert and await aiofiles.os.path.exists(full_path):
            raise StorageError("The resource already exists", code="Duplicate")
        try:
            await aiofiles.os.makedirs(os.path.dirname(full_path), exist_ok=True)
            async with aiofiles.open(full_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error(f"Error writing {path} to bucket {self.name}: {e}")
            raise StorageError(f"Storage upload error: {e}", original_error=e)
        logger.info(f"Stored {len(content)} bytes at {self.name}/{path}")
        return path

    async def download(self, path: str) -> bytes:
        full_path = self._full_path(path)
        if not await aiofiles.os.path.exists(full_path):
            raise NotFoundError("Object not found", code="not_found")
        async with aiofiles.open(full_path, "rb") as f:
            return await f.read()

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        full_path = self._full_path(path)
        if not await aiofiles.os.path.exists(full_path):
            raise NotFoundError("Object not found", code="not_found")
        token = create_storage_token(self.name, path, expires_in)
        return f"{self.public_base_url}/storage/{self.name}/{quote(path)}?token={token}"

    async def remove(self, paths: List[str]) -> None:
        for path in paths:
            full_path = self._full_path(path)
            try:
                await aiofiles.os.remove(full_path)
            except FileNotFoundError:
                logger.warning(f"Object {self.name}/{path} already removed")
            except OSError as e:
                raise StorageError(f"Storage remove error: {e}", original_error=e)


class SupabaseStorageBucket(StorageBucket):
    """Bucket on the hosted storage REST API."""

    def __init__(self, name: str, url: str = SUPABASE_URL, service_role_key: str = SUPABASE_SERVICE_ROLE_KEY,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(name)
        self.url = url.rstrip("/")
        self.base_api_url = f"{self.url}/storage/v1"
        self.headers = {
            "Authorization": f"Bearer {service_role_key}",
            "apikey": service_role_key,
        }
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=HTTP_TIMEOUT, transport=self._transport)

    def _raise_for_status(self, response: httpx.Response, action: str, path: str) -> None:
        if response.status_code == 404:
            raise NotFoundError("Object not found", code="not_found")
        if response.status_code >= 400:
            logger.error(
                f"Failed to {action} in bucket {self.name}: {response.text}",
                extra={"bucket": self.name, "path": path, "status_code": response.status_code}
            )
            raise StorageError(f"Storage {action} failed: {response.text}", code=str(response.status_code))

    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None, upsert: bool = False) -> str:
        _check_path(path)
        headers = {**self.headers, "Content-Type": content_type or "application/octet-stream"}
        if upsert:
            headers["x-upsert"] = "true"
        try:
            async with self._client() as client:
                response = await client.post(f"{self.base_api_url}/object/{self.name}/{path}",
                                             headers=headers, content=content)
        except httpx.HTTPError as e:
            raise StorageError(f"Storage upload error: {e}", original_error=e)
        self._raise_for_status(response, "upload", path)
        return path

    async def download(self, path: str) -> bytes:
        try:
            async with self._client() as client:
                response = await client.get(f"{self.base_api_url}/object/{self.name}/{path}", headers=self.headers)
        except httpx.HTTPError as e:
            raise StorageError(f"Storage download error: {e}", original_error=e)
        self._raise_for_status(response, "download", path)
        return response.content

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        try:
            async with self._client() as client:
                response = await client.post(f"{self.base_api_url}/object/sign/{self.name}/{path}",
                                             headers=self.headers, json={"expiresIn": expires_in})
        except httpx.HTTPError as e:
            raise StorageError(f"Signed URL error: {e}", original_error=e)
        self._raise_for_status(response, "sign", path)

        signed_path = response.json().get("signedURL")
        if not signed_path:
            raise StorageError("Storage response did not contain signedURL")
        # The API answers with a path relative to /storage/v1
        if signed_path.startswith("/"):
            return f"{self.base_api_url}{signed_path}"
        return signed_path

    async def remove(self, paths: List[str]) -> None:
        try:
            async with self._client() as client:
                response = await client.request("DELETE", f"{self.base_api_url}/object/{self.name}",
                                                headers=self.headers, json={"prefixes": list(paths)})
        except httpx.HTTPError as e:
            raise StorageError(f"Storage remove error: {e}", original_error=e)
        self._raise_for_status(response, "remove", ",".join(paths))


def get_storage_bucket(name: str = DOCUMENTS_BUCKET) -> StorageBucket:
    if STORAGE_BACKEND == "supabase":
        return SupabaseStorageBucket(name)
    return LocalStorageBucket(name)
