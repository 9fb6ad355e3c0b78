"""Image upload to the Sanity asset store."""

from __future__ import annotations

import mimetypes
from pathlib import Path

from ...core.errors import MalformedResponseError, ValidationError
from ...utils.logging import get_logger
from ..base import AssetUploader, UploadedAsset
from .client import SanityClient

LOGGER = get_logger(__name__)


class SanityMediaUploader(AssetUploader):
    """Uploads images and returns their durable CDN URL."""

    def __init__(self, client: SanityClient) -> None:
        self._client = client

    def upload(self, data: bytes, filename: str, content_type: str) -> UploadedAsset:
        if not data:
            raise ValidationError("No file provided")

        LOGGER.info(
            "Uploading image",
            extra={
                "event": "asset.upload",
                "filename": filename,
                "content_type": content_type,
                "size": len(data),
            },
        )
        body = self._client.upload_image(data, filename, content_type)

        document = body.get("document")
        remote_url = document.get("url") if isinstance(document, dict) else None
        if not remote_url:
            raise MalformedResponseError(
                "Upload succeeded but no URL returned from Sanity",
                details={"filename": filename, "response": body},
            )

        LOGGER.info("Image uploaded", extra={"event": "asset.uploaded", "url": remote_url})
        return UploadedAsset(
            url=str(remote_url),
            asset_id=document.get("_id"),
            filename=document.get("originalFilename") or filename,
            mime_type=document.get("mimeType") or content_type,
            size=document.get("size"),
        )

    def upload_file(self, path: Path) -> UploadedAsset:
        """Read ``path`` and upload it with a content type guessed from its name."""
        mime_type = guess_content_type(path)
        return self.upload(path.read_bytes(), path.name, mime_type)


def guess_content_type(path: Path) -> str:
    return mimetypes.guess_type(path.name)[0] or "application/octet-stream"
