"""Azure Blob Storage object store."""

from __future__ import annotations

from azure.core.exceptions import AzureError
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient, ContainerClient

from splitpdf.errors import StoreError
from splitpdf.pdf.models import BlobReference
from splitpdf.utils.log_utils import logger

from .base import ClosingStoreMixin


class AzureBlobStore(ClosingStoreMixin):
    """Uploads artifacts as block blobs into a single container."""

    def __init__(
        self,
        container: ContainerClient,
        *,
        service: BlobServiceClient | None = None,
    ) -> None:
        self._container = container
        self._service = service

    @classmethod
    def from_connection_string(cls, connection_string: str, container_name: str) -> AzureBlobStore:
        try:
            service = BlobServiceClient.from_connection_string(connection_string)
        except ValueError as exc:
            raise StoreError(f"Invalid storage connection string: {exc}") from exc
        return cls(service.get_container_client(container_name), service=service)

    @property
    def container_name(self) -> str:
        return self._container.container_name

    async def upload(self, key: str, data: bytes, content_type: str) -> BlobReference:
        blob = self._container.get_blob_client(key)
        try:
            await blob.upload_blob(
                data,
                length=len(data),
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            )
        except AzureError as exc:
            raise StoreError(
                f"Failed to upload {key} to container {self.container_name}: {exc}", key=key
            ) from exc
        logger.debug(f"Uploaded {len(data)} bytes to {blob.url}")
        return BlobReference(key=key, url=blob.url)

    async def close(self) -> None:
        if self._service is not None:
            await self._service.close()
        else:
            await self._container.close()


__all__ = ["AzureBlobStore"]
