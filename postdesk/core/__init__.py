"""Core primitives: error taxonomy and HTTP transport."""

from .errors import (
    ConcurrentModificationError,
    DuplicateSlugError,
    EmptySelectionError,
    MalformedResponseError,
    MissingConfigError,
    NotFoundError,
    PermissionDeniedError,
    PostdeskError,
    RemoteFailureError,
    ValidationError,
)
from .http_client import HttpClient, HttpRequest, HttpResponse

__all__ = [
    "ConcurrentModificationError",
    "DuplicateSlugError",
    "EmptySelectionError",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "MalformedResponseError",
    "MissingConfigError",
    "NotFoundError",
    "PermissionDeniedError",
    "PostdeskError",
    "RemoteFailureError",
    "ValidationError",
]
