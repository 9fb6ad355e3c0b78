"""Typed post operations on top of the content store client."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from ..core.errors import (
    DuplicateSlugError,
    EmptySelectionError,
    MalformedResponseError,
    NotFoundError,
    ValidationError,
)
from ..platforms.base import ContentStore
from ..utils.logging import get_logger
from .post_models import (
    Post,
    PostInput,
    check_price,
    check_vocabulary,
    normalize_categories,
    normalize_slug,
)

LOGGER = get_logger(__name__)

_POST_PROJECTION = "{_id, _createdAt, _rev, title, slug, content, image, price, category}"

SLUG_QUERY = '*[_type == $type && lower(slug.current) == $slug]{_id, "slug": slug.current}'
LIST_QUERY = f"*[_type == $type] | order(_createdAt desc) {_POST_PROJECTION}"
GET_QUERY = f"*[_type == $type && _id == $id][0] {_POST_PROJECTION}"

_PATCHABLE_FIELDS = ("title", "slug", "content", "image", "price")


class PostRepository:
    """Create, list, edit and delete posts; nothing is cached between calls.

    Category edits are read-modify-write. With ``revision_guard`` enabled the
    patch carries the revision seen at read time, so a concurrent edit makes
    the store reject the write instead of silently overwriting it.
    """

    def __init__(
        self,
        store: ContentStore,
        *,
        document_type: str = "post",
        vocabulary: Iterable[str] | None = None,
        revision_guard: bool = True,
    ) -> None:
        self._store = store
        self._type = document_type
        self._vocabulary = tuple(vocabulary) if vocabulary is not None else None
        self._revision_guard = revision_guard

    @property
    def vocabulary(self) -> tuple[str, ...] | None:
        return self._vocabulary

    def create(self, post_input: PostInput) -> Post:
        post_input.validate(self._vocabulary)
        slug = post_input.normalized_slug
        self._ensure_unique_slug(slug)

        document = post_input.to_document(self._type)
        LOGGER.info("Creating post", extra={"event": "post.create", "slug": slug})
        result = self._store.mutate([{"create": document}])

        created = result.first_document()
        if created is not None:
            return Post.from_document(created)
        if not result.ids:
            raise MalformedResponseError(
                "Create succeeded but no document id was returned",
                details={"transaction": result.transaction_id},
            )
        return Post.from_document({**document, "_id": result.ids[0]})

    def list(self) -> list[Post]:
        documents = self._store.query(LIST_QUERY, {"type": self._type}) or []
        posts = [Post.from_document(doc) for doc in documents if isinstance(doc, dict)]
        LOGGER.info("Fetched posts", extra={"event": "post.list", "count": len(posts)})
        return posts

    def get(self, post_id: str) -> Post:
        document = self._store.query(GET_QUERY, {"type": self._type, "id": post_id})
        if not document:
            raise NotFoundError(post_id)
        return Post.from_document(document)

    def update(self, post_id: str, **fields: Any) -> None:
        """Patch scalar fields; an empty ``image`` removes the image."""
        unknown = sorted(set(fields) - set(_PATCHABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Fields cannot be patched: {', '.join(unknown)}")

        to_set: dict[str, Any] = {}
        to_unset: list[str] = []
        for name, value in fields.items():
            if value is None:
                continue
            if name == "title":
                if not str(value).strip():
                    raise ValidationError("Title is required")
                to_set["title"] = value
            elif name == "slug":
                slug = normalize_slug(str(value))
                if not slug:
                    raise ValidationError("Slug is required")
                self._ensure_unique_slug(slug, exclude_id=post_id)
                to_set["slug"] = {"_type": "slug", "current": slug}
            elif name == "price":
                check_price(value)
                to_set["price"] = value
            elif name == "image" and not value:
                to_unset.append("image")
            else:
                to_set[name] = value

        if not to_set and not to_unset:
            raise ValidationError("Nothing to update")

        patch: dict[str, Any] = {"id": post_id}
        if to_set:
            patch["set"] = to_set
        if to_unset:
            patch["unset"] = to_unset
        LOGGER.info(
            "Patching post",
            extra={"event": "post.update", "id": post_id, "fields": sorted([*to_set, *to_unset])},
        )
        self._store.mutate([{"patch": patch}])

    def delete(self, post_id: str) -> None:
        LOGGER.info("Deleting post", extra={"event": "post.delete", "id": post_id})
        self._store.mutate([{"delete": {"id": post_id}}])

    def replace_categories(self, post_id: str, categories: Sequence[str] | str) -> None:
        """Overwrite the stored category set; an empty selection is rejected."""
        selected = list(normalize_categories(categories))
        if not selected:
            raise EmptySelectionError()
        check_vocabulary(selected, self._vocabulary)

        LOGGER.info(
            "Replacing categories",
            extra={"event": "post.categories.replace", "id": post_id, "categories": selected},
        )
        self._store.mutate([{"patch": {"id": post_id, "set": {"category": selected}}}])

    def add_category(self, post_id: str, category: str) -> bool:
        """Add ``category``; returns ``False`` without writing when it is already present."""
        self._check_category(category)
        post = self.get(post_id)
        if category in post.categories:
            LOGGER.info(
                "Category already present",
                extra={"event": "post.categories.add", "id": post_id, "category": category},
            )
            return False

        self._patch_categories(post, [*post.categories, category])
        return True

    def remove_category(self, post_id: str, category: str) -> None:
        post = self.get(post_id)
        remaining = [value for value in post.categories if value != category]
        self._patch_categories(post, remaining)

    def _check_category(self, category: str) -> None:
        if not category or not category.strip():
            raise ValidationError("Category is required")
        check_vocabulary([category], self._vocabulary)

    def _patch_categories(self, post: Post, categories: list[str]) -> None:
        patch: dict[str, Any] = {"id": post.id, "set": {"category": categories}}
        if self._revision_guard and post.rev:
            patch["ifRevisionID"] = post.rev
        LOGGER.info(
            "Patching categories",
            extra={"event": "post.categories.patch", "id": post.id, "categories": categories},
        )
        self._store.mutate([{"patch": patch}])

    def _ensure_unique_slug(self, slug: str, *, exclude_id: str | None = None) -> None:
        existing = self._store.query(SLUG_QUERY, {"type": self._type, "slug": slug}) or []
        conflicts = [doc for doc in existing if not exclude_id or doc.get("_id") != exclude_id]
        if conflicts:
            LOGGER.warning("Duplicate slug", extra={"event": "post.duplicate_slug", "slug": slug})
            raise DuplicateSlugError(slug)
