"""Platform integration package."""

from __future__ import annotations

from .base import AssetUploader, ContentStore, MutationResult, UploadedAsset

__all__ = [
    "AssetUploader",
    "ContentStore",
    "MutationResult",
    "UploadedAsset",
]
