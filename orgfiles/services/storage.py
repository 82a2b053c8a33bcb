"""
Blob storage gateway: upload registration, URL resolution, and deletion.

The services depend on the ``BlobStorageGateway`` protocol only.
``MinioBlobGateway`` is the production implementation; the MinIO client is
blocking, so every call is pushed onto a worker thread.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import structlog
from minio import Minio
from minio.error import S3Error

from orgfiles.core.config import Settings, get_settings
from orgfiles.core.errors import BlobUnavailableError
from orgfiles_shared.schemas.files import UploadTarget

log = structlog.get_logger()

_MISSING_OBJECT_CODES = {"NoSuchKey", "NoSuchObject", "NoSuchBucket"}
# Retryable backend errors, re-raised as-is.
_TRANSIENT_CODES = {"SlowDown", "InternalError", "ServiceUnavailable", "RequestTimeout"}


class BlobStorageGateway(Protocol):
    async def register_upload(self) -> UploadTarget: ...

    async def resolve_url(self, storage_ref: str) -> Optional[str]: ...

    async def delete_blob(self, storage_ref: str) -> None:
        """Remove the bytes.

        Raises ``BlobUnavailableError`` when the blob is gone or the backend
        refuses the delete; transient backend failures propagate unchanged.
        """
        ...


class MinioBlobGateway:
    """``BlobStorageGateway`` backed by a MinIO / S3 bucket."""

    def __init__(
        self,
        client: Minio,
        bucket: str,
        *,
        upload_expires: timedelta = timedelta(minutes=15),
        download_expires: timedelta = timedelta(hours=1),
    ):
        self._client = client
        self._bucket = bucket
        self._upload_expires = upload_expires
        self._download_expires = download_expires

    async def ensure_bucket(self) -> None:
        exists = await asyncio.to_thread(self._client.bucket_exists, self._bucket)
        if not exists:
            await asyncio.to_thread(self._client.make_bucket, self._bucket)
            log.info("storage.bucket_created", bucket=self._bucket)

    async def register_upload(self) -> UploadTarget:
        storage_ref = uuid.uuid4().hex
        url = await asyncio.to_thread(
            self._client.presigned_put_object,
            bucket_name=self._bucket,
            object_name=storage_ref,
            expires=self._upload_expires,
        )
        return UploadTarget(
            storage_ref=storage_ref,
            upload_url=url,
            expires_at=datetime.now(timezone.utc) + self._upload_expires,
        )

    async def resolve_url(self, storage_ref: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(
                self._client.presigned_get_object,
                bucket_name=self._bucket,
                object_name=storage_ref,
                expires=self._download_expires,
            )
        except S3Error as exc:
            log.warning("storage.resolve_failed", storage_ref=storage_ref, code=exc.code)
            return None

    async def delete_blob(self, storage_ref: str) -> None:
        try:
            # remove_object succeeds silently on missing keys; stat first.
            await asyncio.to_thread(
                self._client.stat_object,
                bucket_name=self._bucket,
                object_name=storage_ref,
            )
            await asyncio.to_thread(
                self._client.remove_object,
                bucket_name=self._bucket,
                object_name=storage_ref,
            )
        except S3Error as exc:
            if exc.code in _MISSING_OBJECT_CODES:
                raise BlobUnavailableError(storage_ref, f"Blob not found: {storage_ref}") from exc
            if exc.code in _TRANSIENT_CODES:
                raise
            raise BlobUnavailableError(storage_ref, f"Storage error: {exc.code}") from exc


def create_minio_gateway(settings: Settings | None = None) -> MinioBlobGateway:
    settings = settings or get_settings()
    client = Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )
    return MinioBlobGateway(
        client,
        settings.minio_bucket,
        upload_expires=timedelta(minutes=settings.upload_url_expire_minutes),
        download_expires=timedelta(minutes=settings.download_url_expire_minutes),
    )
