# Overview: Object storage for supporting documents attached to ledger records.

"""
DocumentStorage is the seam the record service talks to; S3DocumentStorage
is the production implementation for any S3-compatible endpoint (AWS S3,
Cloudflare R2, MinIO).

One bucket per record kind (sales, purchases, expenses). Object keys are
<client_id>/<store_id or "no-store">/<epoch millis>_<filename>.

Usage:
    storage = S3DocumentStorage.from_config(app.config)
    url = storage.upload("sales", "1/2/1700000000000_receipt.png", data, "image/png")
"""

from __future__ import annotations

import logging
import os
import uuid

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import UpstreamError
from ..time_utils import utcnow


logger = logging.getLogger(__name__)


CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "pdf": "application/pdf",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(filename: str | None) -> str:
    """Infer a content type from the filename extension."""
    ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def build_object_path(client_id: int, store_id: int | None, filename: str | None, prefix: str = "doc") -> str:
    # Keep only the basename so callers cannot climb out of the client folder
    name = os.path.basename(filename or "") or f"{prefix}_{uuid.uuid4().hex}"
    millis = int(utcnow().timestamp() * 1000)
    return f"{client_id}/{store_id or 'no-store'}/{millis}_{name}"


class DocumentStorage:
    """Interface: upload returns the public URL of the stored object."""

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        raise NotImplementedError

    def delete(self, bucket: str, path: str) -> None:
        raise NotImplementedError


class S3DocumentStorage(DocumentStorage):
    """S3-compatible storage via boto3."""

    def __init__(
        self,
        *,
        endpoint_url: str | None,
        access_key_id: str,
        secret_access_key: str,
        region: str = "auto",
        public_url: str | None = None,
    ):
        self.endpoint_url = endpoint_url
        self.public_url = (public_url or endpoint_url or "").rstrip("/")
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
        )

    @classmethod
    def from_config(cls, config) -> "S3DocumentStorage | None":
        """Build from Flask config; None when credentials are not configured."""
        if not config.get("S3_ACCESS_KEY_ID") or not config.get("S3_SECRET_ACCESS_KEY"):
            return None
        return cls(
            endpoint_url=config.get("S3_ENDPOINT_URL"),
            access_key_id=config["S3_ACCESS_KEY_ID"],
            secret_access_key=config["S3_SECRET_ACCESS_KEY"],
            region=config.get("S3_REGION") or "auto",
            public_url=config.get("S3_PUBLIC_URL"),
        )

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        try:
            self._client.put_object(Bucket=bucket, Key=path, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Upload to %s/%s failed: %s", bucket, path, exc)
            raise UpstreamError("Failed to upload document", details={"reason": str(exc)}) from exc
        return f"{self.public_url}/{bucket}/{path}"

    def delete(self, bucket: str, path: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=path)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Delete of %s/%s failed: %s", bucket, path, exc)
            raise UpstreamError("Failed to delete document", details={"reason": str(exc)}) from exc
