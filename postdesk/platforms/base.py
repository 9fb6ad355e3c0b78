"""Base contracts for the hosted content platform."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence


@dataclass(slots=True)
class UploadedAsset:
    """Represents the outcome of a single asset upload."""

    url: str
    asset_id: str | None = None
    filename: str | None = None
    mime_type: str | None = None
    size: int | None = None


@dataclass(slots=True)
class MutationResult:
    """Per-mutation outcome returned by the store."""

    transaction_id: str | None
    results: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ids(self) -> list[str]:
        return [str(item["id"]) for item in self.results if item.get("id")]

    def first_document(self) -> dict[str, Any] | None:
        for item in self.results:
            document = item.get("document")
            if isinstance(document, dict):
                return document
        return None


class ContentStore(Protocol):
    """Read queries and write mutations against the remote document store."""

    def query(self, query: str, params: Mapping[str, Any] | None = None) -> Any:
        """Run a read query and return its ``result`` (array, object or ``None``)."""

    def mutate(self, mutations: Sequence[Mapping[str, Any]]) -> MutationResult:
        """Apply the mutations atomically as one batch."""


class AssetUploader(Protocol):
    """Uploads binary assets to the remote platform."""

    def upload(self, data: bytes, filename: str, content_type: str) -> UploadedAsset:
        """Store ``data`` and return the durable asset URL."""
