"""Shared fixtures: an in-memory content store standing in for the remote API."""

from __future__ import annotations

import copy
from typing import Any, Mapping, Sequence

import pytest

from postdesk.core.errors import ConcurrentModificationError, RemoteFailureError
from postdesk.platforms.base import MutationResult, UploadedAsset
from postdesk.services.post_repository import PostRepository
from postdesk.settings import DEFAULT_CATEGORIES


class FakeContentStore:
    """Interprets the repository's queries by their parameters."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.queries: list[tuple[str, dict[str, Any]]] = []
        self.mutations: list[list[dict[str, Any]]] = []
        self.failing_slugs: dict[str, Exception] = {}
        self._counter = 0

    def seed(self, **fields: Any) -> dict[str, Any]:
        self._counter += 1
        doc = {
            "_id": fields.pop("_id", f"post-{self._counter}"),
            "_type": "post",
            "_createdAt": f"2024-01-01T00:00:{self._counter:02d}Z",
            "_rev": f"rev-{self._counter}",
            "title": "Seeded",
            "slug": {"_type": "slug", "current": f"seeded-{self._counter}"},
            "content": "",
            "price": 0,
            "category": [],
        }
        doc.update(fields)
        self.documents[doc["_id"]] = doc
        return doc

    def query(self, query: str, params: Mapping[str, Any] | None = None) -> Any:
        params = dict(params or {})
        self.queries.append((query, params))
        posts = [doc for doc in self.documents.values() if doc.get("_type") == params.get("type")]
        if "slug" in params:
            return [
                {"_id": doc["_id"], "slug": doc["slug"]["current"]}
                for doc in posts
                if str(doc["slug"]["current"]).lower() == params["slug"]
            ]
        if "id" in params:
            doc = self.documents.get(params["id"])
            return copy.deepcopy(doc) if doc else None
        ordered = sorted(posts, key=lambda doc: doc["_createdAt"], reverse=True)
        return [copy.deepcopy(doc) for doc in ordered]

    def mutate(self, mutations: Sequence[Mapping[str, Any]]) -> MutationResult:
        batch = [copy.deepcopy(dict(mutation)) for mutation in mutations]
        self.mutations.append(batch)
        results: list[dict[str, Any]] = []
        for mutation in batch:
            if "create" in mutation:
                doc = mutation["create"]
                slug = doc["slug"]["current"]
                if slug in self.failing_slugs:
                    raise self.failing_slugs[slug]
                created = self.seed(**doc)
                results.append({"id": created["_id"], "operation": "create", "document": created})
            elif "delete" in mutation:
                self.documents.pop(mutation["delete"]["id"], None)
                results.append({"id": mutation["delete"]["id"], "operation": "delete"})
            elif "patch" in mutation:
                patch = mutation["patch"]
                doc = self.documents.get(patch["id"])
                if doc is None:
                    raise RemoteFailureError("Document not found", status=404)
                expected = patch.get("ifRevisionID")
                if expected is not None and expected != doc["_rev"]:
                    raise ConcurrentModificationError("Revision mismatch", status=409)
                doc.update(patch.get("set", {}))
                for name in patch.get("unset", []):
                    doc.pop(name, None)
                doc["_rev"] = doc["_rev"] + "+"
                results.append({"id": doc["_id"], "operation": "update"})
        return MutationResult(transaction_id=f"tx-{len(self.mutations)}", results=results)

    @property
    def mutation_count(self) -> int:
        return len(self.mutations)


class StubUploader:
    def __init__(self, url: str = "https://cdn.sanity.io/images/p/d/abc.png", *, error: Exception | None = None) -> None:
        self.url = url
        self.error = error
        self.calls: list[tuple[bytes, str, str]] = []

    def upload(self, data: bytes, filename: str, content_type: str) -> UploadedAsset:
        self.calls.append((data, filename, content_type))
        if self.error is not None:
            raise self.error
        return UploadedAsset(url=self.url, asset_id="image-abc", filename=filename)


@pytest.fixture
def store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def repository(store: FakeContentStore) -> PostRepository:
    return PostRepository(store, vocabulary=DEFAULT_CATEGORIES)


@pytest.fixture
def uploader() -> StubUploader:
    return StubUploader()
