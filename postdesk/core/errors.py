"""Error taxonomy shared by the store client, repository, codec and dashboard."""

from __future__ import annotations

import json
from typing import Any, Mapping


class PostdeskError(RuntimeError):
    """Base class for every failure surfaced across a component boundary."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def __str__(self) -> str:
        base = super().__str__()
        if not self.details:
            return base
        try:
            detail_repr = json.dumps(self.details, ensure_ascii=False)
        except TypeError:
            detail_repr = str(self.details)
        return f"{base} | details: {detail_repr}"


class MissingConfigError(PostdeskError):
    """Required configuration is absent; raised before any network call."""

    def __init__(self, setting: str, message: str | None = None) -> None:
        super().__init__(message or f"{setting} is not configured.")
        self.setting = setting


class ValidationError(PostdeskError):
    """Caller-supplied input failed a precondition."""


class EmptySelectionError(ValidationError):
    """A category replacement was requested with no categories selected."""

    def __init__(self, message: str = "Please select at least one category") -> None:
        super().__init__(message)


class DuplicateSlugError(PostdeskError):
    """A post with the same normalised slug already exists."""

    def __init__(self, slug: str) -> None:
        super().__init__(
            f'A post with the slug "{slug}" already exists. Please choose a different slug.'
        )
        self.slug = slug


class NotFoundError(PostdeskError):
    """The referenced post does not exist in the remote store."""

    def __init__(self, post_id: str) -> None:
        super().__init__("Post not found", details={"id": post_id})
        self.post_id = post_id


class RemoteFailureError(PostdeskError):
    """The remote service answered with a non-success status or was unreachable."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        body: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        merged = dict(details or {})
        if status is not None:
            merged.setdefault("status", status)
        if body:
            merged.setdefault("body", body[:500])
        super().__init__(message, details=merged)
        self.status = status
        self.body = body


class PermissionDeniedError(RemoteFailureError):
    """HTTP 403: the write token lacks the permission needed for the call."""


class ConcurrentModificationError(RemoteFailureError):
    """HTTP 409: the document changed between read and conditional patch."""


class MalformedResponseError(PostdeskError):
    """The call succeeded but the response violated the expected shape."""


__all__ = [
    "ConcurrentModificationError",
    "DuplicateSlugError",
    "EmptySelectionError",
    "MalformedResponseError",
    "MissingConfigError",
    "NotFoundError",
    "PermissionDeniedError",
    "PostdeskError",
    "RemoteFailureError",
    "ValidationError",
]
