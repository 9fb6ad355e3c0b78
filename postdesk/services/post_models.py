"""Data models for posts stored in the content platform."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from ..core.errors import ValidationError

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]")
_WHITESPACE_RUN = re.compile(r"\s+")
_DASH_RUN = re.compile(r"-+")


def normalize_categories(raw: Any) -> tuple[str, ...]:
    """Canonical category set from stored data.

    Legacy documents hold a bare string instead of a list; ``None`` means no
    categories. Duplicates are dropped, first occurrence wins.
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        return (raw,) if raw else ()
    seen: list[str] = []
    for item in raw:
        if item is None:
            continue
        value = str(item)
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


def normalize_slug(slug: str) -> str:
    return slug.strip().lower()


def slugify(text: str) -> str:
    """Derive a URL-safe slug from a title."""
    value = text.lower().strip()
    value = _NON_SLUG_CHARS.sub("", value)
    value = _WHITESPACE_RUN.sub("-", value)
    return _DASH_RUN.sub("-", value)


def format_price(value: float | int) -> str:
    """Render prices the way the dashboard shows them: ``10`` not ``10.0``."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def parse_price(raw: str) -> float:
    try:
        price = float(raw.strip())
    except (AttributeError, ValueError) as exc:
        raise ValidationError(f"Invalid price: {raw!r}") from exc
    if not math.isfinite(price):
        raise ValidationError(f"Invalid price: {raw!r}")
    return price


def _slug_value(raw: Any) -> str:
    if isinstance(raw, Mapping):
        return str(raw.get("current") or "")
    return str(raw or "")


@dataclass(slots=True)
class Post:
    """A post as read back from the store."""

    id: str
    created_at: str
    title: str
    slug: str
    content: str
    price: float
    categories: tuple[str, ...] = ()
    image: str | None = None
    rev: str | None = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Post":
        price = doc.get("price")
        try:
            price_value = float(price) if price is not None else 0.0
        except (TypeError, ValueError):
            price_value = 0.0
        return cls(
            id=str(doc.get("_id", "")),
            created_at=str(doc.get("_createdAt") or ""),
            title=str(doc.get("title") or ""),
            slug=_slug_value(doc.get("slug")),
            content=str(doc.get("content") or ""),
            price=price_value,
            categories=normalize_categories(doc.get("category")),
            image=doc.get("image") or None,
            rev=doc.get("_rev"),
        )

    @property
    def is_valid(self) -> bool:
        return bool(self.title) and bool(self.categories) and self.price >= 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "title": self.title,
            "slug": self.slug,
            "content": self.content,
            "image": self.image,
            "price": self.price,
            "categories": list(self.categories),
        }


@dataclass(slots=True)
class PostInput:
    """Fields supplied by the operator to create a post."""

    title: str
    slug: str
    content: str
    price: float
    categories: Sequence[str] | str = field(default_factory=list)
    image: str | None = None

    def __post_init__(self) -> None:
        # a bare string is one category, not a sequence of characters
        self.categories = list(normalize_categories(self.categories))

    @property
    def normalized_slug(self) -> str:
        return normalize_slug(self.slug)

    def validate(self, vocabulary: Iterable[str] | None = None) -> None:
        if not self.title.strip():
            raise ValidationError("Title is required")
        if not self.normalized_slug:
            raise ValidationError("Slug is required")
        check_price(self.price)
        check_vocabulary(self.categories, vocabulary)

    def to_document(self, document_type: str = "post") -> dict[str, Any]:
        doc: dict[str, Any] = {
            "_type": document_type,
            "title": self.title,
            "slug": {"_type": "slug", "current": self.normalized_slug},
            "content": self.content,
            "price": self.price,
            "category": list(self.categories),
        }
        if self.image:
            doc["image"] = self.image
        return doc


def check_price(value: Any) -> None:
    """Prices are finite, non-negative numbers; booleans do not count."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"Invalid price: {value!r}")
    if value < 0:
        raise ValidationError("Price must not be negative")


def check_vocabulary(categories: Iterable[str], vocabulary: Iterable[str] | None) -> None:
    if vocabulary is None:
        return
    allowed = set(vocabulary)
    unknown = [category for category in categories if category not in allowed]
    if unknown:
        raise ValidationError(
            f"Unknown categories: {', '.join(unknown)}",
            details={"allowed": sorted(allowed)},
        )


@dataclass(slots=True)
class ImportReport:
    """Outcome of a best-effort CSV import."""

    imported: int = 0
    errors: list[str] = field(default_factory=list)
    imported_titles: list[str] = field(default_factory=list)

    def record_success(self, title: str) -> None:
        self.imported += 1
        self.imported_titles.append(title)

    def record_failure(self, row_number: int, message: str, *, title: str | None = None) -> None:
        label = f"Row {row_number} ({title})" if title else f"Row {row_number}"
        self.errors.append(f"{label}: {message}")
