"""
S3-compatible object storage for uploaded documents and generated PDFs.

The boto3 client is synchronous; calls run in the default executor. The
module keeps one ObjectStore created during app startup (init_object_store)
and handed to routes through get_object_store.
"""
from __future__ import annotations

import asyncio
import logging
import os
import re
import uuid
from functools import partial
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from config import Settings, settings
from services.errors import TransientStoreError, UploadRejected

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"pdf", "jpg", "jpeg", "png", "doc", "docx"}
ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def check_upload(
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    allowed_extensions: Optional[set[str]] = None,
) -> None:
    """Raise UploadRejected unless the file is an allowed type within the size limit."""
    allowed_extensions = allowed_extensions or ALLOWED_EXTENSIONS
    ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
    if ext not in allowed_extensions or (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise UploadRejected(
            f"Only {', '.join(sorted(allowed_extensions))} files are allowed"
        )
    if size <= 0:
        raise UploadRejected("File is empty.")
    if size > settings.max_upload_bytes:
        raise UploadRejected(
            f"File exceeds the {settings.max_upload_bytes // (1024 * 1024)} MB limit",
            too_large=True,
        )


def build_object_key(key_hint: str, filename: Optional[str] = None) -> str:
    """'<hint>/<random>-<safe filename>'; path components in the filename are dropped."""
    safe_name = re.sub(r"[^A-Za-z0-9._-]", "_", os.path.basename(filename or "")) or "file"
    return f"{key_hint.strip('/')}/{uuid.uuid4().hex[:12]}-{safe_name}"


class ObjectStore:
    """Thin wrapper around a boto3 S3 client."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        public_base_url: str,
        region: str = "us-east-1",
    ):
        self._bucket = bucket
        self._public_base_url = public_base_url.rstrip("/")
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
        )

    def ensure_bucket(self) -> None:
        """Create the bucket if it doesn't already exist (dev convenience)."""
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError:
            logger.info("Creating S3 bucket: %s", self._bucket)
            self._client.create_bucket(Bucket=self._bucket)

    async def put(self, data: bytes, content_type: str, key_hint: str, filename: Optional[str] = None) -> str:
        """Upload bytes and return the public reference (URL) of the stored object."""
        key = build_object_key(key_hint, filename)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                partial(
                    self._client.put_object,
                    Bucket=self._bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                ),
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning("Object upload failed for %s: %s", key, e)
            raise TransientStoreError("File storage temporarily unavailable, please try again") from e
        return f"{self._public_base_url}/{key}"


_store: ObjectStore | None = None


def init_object_store(cfg: Settings) -> ObjectStore:
    """Initialise the singleton (called once from app lifespan)."""
    global _store
    _store = ObjectStore(
        endpoint=cfg.s3_endpoint,
        access_key=cfg.s3_access_key,
        secret_key=cfg.s3_secret_key,
        bucket=cfg.s3_bucket,
        public_base_url=cfg.public_base_url,
        region=cfg.s3_region,
    )
    try:
        _store.ensure_bucket()
    except (BotoCoreError, ClientError) as e:
        logger.warning("Object store not reachable at startup (bucket=%s): %s", cfg.s3_bucket, e)
    logger.info("ObjectStore initialised (bucket=%s)", cfg.s3_bucket)
    return _store


def get_object_store() -> ObjectStore:
    if _store is None:
        raise RuntimeError("ObjectStore not initialised -- call init_object_store() first")
    return _store
