"""Sanity platform adapters."""

from __future__ import annotations

from .client import SanityClient
from .credentials import SanityCredentialStore, SanityProject
from .media import SanityMediaUploader, guess_content_type

__all__ = [
    "SanityClient",
    "SanityCredentialStore",
    "SanityMediaUploader",
    "SanityProject",
    "guess_content_type",
]
