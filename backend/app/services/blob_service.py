import asyncio
import mimetypes
import os
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import unquote, urlparse
from uuid import uuid4

import anyio
from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings
from fastapi import Request
from starlette.datastructures import UploadFile

from app.config import settings
from app.errors import UpstreamError, ValidationError
from app.utils.logging import get_logger


logger = get_logger("services.blob_service")

IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}
DOCUMENT_TYPES = IMAGE_TYPES | {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


class AssetStorage:
    """Uploads files to blob storage and removes them again by URL."""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        container_name: Optional[str] = None,
        client: Optional[BlobServiceClient] = None,
    ):
        self.connection_string = connection_string or settings.azure_storage_connection_string
        self.container_name = container_name or settings.azure_storage_container_name
        self.client: Optional[BlobServiceClient] = client
        self._container_ready = False

        if self.client is None and self.connection_string:
            try:
                self.client = BlobServiceClient.from_connection_string(self.connection_string)
            except (AzureError, ValueError) as e:
                logger.error("blob_service_init_failed", error=str(e))

    @property
    def configured(self) -> bool:
        return self.client is not None

    def _ensure_container(self):
        container_client = self.client.get_container_client(self.container_name)
        if not self._container_ready:
            if not container_client.exists():
                container_client.create_container(public_access="blob")
            self._container_ready = True
        return container_client

    def _upload_sync(self, data: bytes, blob_name: str, content_type: str) -> str:
        container_client = self._ensure_container()
        blob_client = container_client.get_blob_client(blob_name)
        blob_client.upload_blob(
            data,
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )
        return blob_client.url

    async def upload(
        self,
        data: bytes,
        *,
        folder: str,
        filename: str = "",
        content_type: str = "application/octet-stream",
        max_retries: int = 3,
    ) -> Optional[str]:
        if not self.client:
            logger.warning("blob_service_not_configured")
            return None

        if not data:
            logger.warning("blob_upload_empty_payload", file_name=filename)
            return None

        extension = os.path.splitext(filename)[1].lower() or mimetypes.guess_extension(content_type) or ""
        blob_name = f"{folder.strip('/')}/{uuid4().hex}{extension}"

        attempt = 0
        while attempt < max_retries:
            attempt += 1
            try:
                url = await anyio.to_thread.run_sync(self._upload_sync, data, blob_name, content_type)
                logger.info("blob_upload_success", blob_name=blob_name, size=len(data))
                return url
            except AzureError as e:
                logger.error(
                    "blob_upload_failed",
                    error=str(e),
                    blob_name=blob_name,
                    attempt=attempt,
                    error_type=type(e).__name__,
                )
                if attempt >= max_retries:
                    return None
                await asyncio.sleep(0.5 * (2 ** (attempt - 1)))

        return None

    def _locate(self, url: str) -> Optional[Tuple[str, str]]:
        parsed = urlparse(url)
        if parsed.netloc.lower() != (self.client.primary_hostname or "").lower():
            return None
        path = unquote(parsed.path.lstrip("/"))
        if not path or "/" not in path:
            return None
        container_name, blob_name = path.split("/", 1)
        return container_name, blob_name

    def _delete_sync(self, container_name: str, blob_name: str) -> None:
        self.client.get_blob_client(container=container_name, blob=blob_name).delete_blob()

    async def delete(self, url: str) -> bool:
        """Delete the blob behind ``url``. A blob that is already gone counts as deleted."""
        if not self.client:
            logger.warning("blob_service_not_configured")
            return False

        location = self._locate(url) if url else None
        if location is None:
            logger.error("blob_delete_invalid_url", url=url)
            return False

        container_name, blob_name = location
        try:
            await anyio.to_thread.run_sync(self._delete_sync, container_name, blob_name)
        except ResourceNotFoundError:
            logger.info("blob_delete_not_found", blob_name=blob_name)
            return True
        except AzureError as e:
            logger.error("blob_delete_failed", error=str(e), blob_name=blob_name)
            return False

        logger.info("blob_delete_success", blob_name=blob_name)
        return True


def get_asset_storage(request: Request) -> AssetStorage:
    return request.app.state.assets


def validate_files(
    files: List[UploadFile],
    *,
    allowed_types: Iterable[str],
    max_count: int,
    label: str,
) -> None:
    if len(files) > max_count:
        raise ValidationError(f"Too many {label}: at most {max_count} allowed")
    allowed = set(allowed_types)
    for upload in files:
        content_type = (upload.content_type or "").lower()
        if content_type not in allowed:
            raise ValidationError(f"Unsupported file type for {label}: {upload.filename}")
        size = getattr(upload, "size", None)
        if size is not None and size > settings.max_upload_bytes:
            raise ValidationError(f"File {upload.filename} exceeds the upload size limit")


async def store_uploads(
    storage: AssetStorage,
    files: List[UploadFile],
    *,
    folder: str,
) -> List[str]:
    """Upload every file or fail the request; nothing is persisted on failure."""
    urls: List[str] = []
    for upload in files:
        data = await upload.read()
        if len(data) > settings.max_upload_bytes:
            await discard_assets(storage, urls)
            raise ValidationError(f"File {upload.filename} exceeds the upload size limit")
        url = await storage.upload(
            data,
            folder=folder,
            filename=upload.filename or "",
            content_type=upload.content_type or "application/octet-stream",
        )
        if not url:
            await discard_assets(storage, urls)
            raise UpstreamError(f"Failed to upload {upload.filename}")
        urls.append(url)
    return urls


async def discard_assets(storage: AssetStorage, urls: Iterable[Optional[str]]) -> Dict[str, int]:
    """Best-effort removal of assets that are no longer referenced.

    Every URL is attempted; failures are logged and never raised.
    """
    deleted = 0
    failed = 0
    for url in urls:
        if not url:
            continue
        if await storage.delete(url):
            deleted += 1
        else:
            failed += 1
            logger.warning("asset_cleanup_failed", url=url)
    if deleted or failed:
        logger.info("asset_cleanup_completed", deleted=deleted, failed=failed)
    return {"deleted": deleted, "failed": failed}
