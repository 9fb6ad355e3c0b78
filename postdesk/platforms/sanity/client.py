"""Stateless client for the Sanity query, mutate and asset endpoints."""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

from ...core.errors import (
    ConcurrentModificationError,
    MalformedResponseError,
    PermissionDeniedError,
    RemoteFailureError,
)
from ...core.http_client import HttpClient, HttpRequest, HttpResponse
from ...settings import SanitySettings
from ...utils.logging import get_logger
from ..base import MutationResult
from .credentials import SanityCredentialStore, SanityProject

LOGGER = get_logger(__name__)

PERMISSION_HINT = (
    'Permission denied: Your SANITY_API_WRITE_TOKEN does not have "{action}" permission. '
    "Please generate a new token with Editor or Administrator role in your Sanity project settings."
)


class SanityClient:
    """Minimal client for the Sanity HTTP API; owns no state between calls."""

    def __init__(
        self,
        credentials: SanityCredentialStore,
        http_client: HttpClient,
        settings: SanitySettings | None = None,
    ) -> None:
        self._credentials = credentials
        self._http = http_client
        self._settings = settings or SanitySettings()

    @property
    def settings(self) -> SanitySettings:
        return self._settings

    def query(self, query: str, params: Mapping[str, Any] | None = None) -> Any:
        project = self._credentials.load_project()
        token = self._credentials.load_read_token()
        use_cdn = self._settings.use_cdn and token is None

        request_params = {"query": query}
        for name, value in (params or {}).items():
            request_params[f"${name}"] = json.dumps(value, ensure_ascii=False)

        response = self._http.send(
            HttpRequest(
                url=f"{self._base_url(project, cdn=use_cdn)}/data/query/{project.dataset}",
                method="GET",
                headers=self._auth_headers(token),
                params=request_params,
            )
        )
        self._raise_for_status(response, action="read")
        data = self._decode_json(response)
        if not isinstance(data, dict) or "result" not in data:
            raise MalformedResponseError(
                "Query response is missing the result field", details={"response": response.text[:200]}
            )
        return data["result"]

    def mutate(self, mutations: Sequence[Mapping[str, Any]]) -> MutationResult:
        project = self._credentials.load_project()
        token = self._credentials.load_write_token()
        kinds = [next(iter(mutation), "?") for mutation in mutations]

        LOGGER.info(
            "Submitting mutations",
            extra={"event": "store.mutate", "operations": kinds, "dataset": project.dataset},
        )
        response = self._http.send(
            HttpRequest(
                url=f"{self._base_url(project)}/data/mutate/{project.dataset}",
                method="POST",
                headers={**self._auth_headers(token), "Content-Type": "application/json"},
                params={"returnIds": "true", "returnDocuments": "true", "visibility": "sync"},
                json={"mutations": list(mutations)},
            )
        )
        self._raise_for_status(response, action=kinds[0] if len(kinds) == 1 else "write")
        data = self._decode_json(response)
        if not isinstance(data, dict):
            raise MalformedResponseError(
                "Mutation response is not an object", details={"response": response.text[:200]}
            )
        results = data.get("results") or []
        return MutationResult(
            transaction_id=data.get("transactionId"),
            results=[item for item in results if isinstance(item, dict)],
        )

    def upload_image(self, data: bytes, filename: str, content_type: str) -> dict[str, Any]:
        """POST raw bytes to the image asset endpoint and return the decoded body."""
        project = self._credentials.load_project()
        token = self._credentials.load_write_token()

        response = self._http.send(
            HttpRequest(
                url=f"{self._base_url(project)}/assets/images/{project.dataset}",
                method="POST",
                headers={**self._auth_headers(token), "Content-Type": content_type},
                params={"filename": filename},
                data=data,
            )
        )
        self._raise_for_status(response, action="create")
        body = self._decode_json(response)
        if not isinstance(body, dict):
            raise MalformedResponseError(
                "Upload response is not an object", details={"response": response.text[:200]}
            )
        return body

    def _base_url(self, project: SanityProject, *, cdn: bool = False) -> str:
        host = "apicdn" if cdn else "api"
        return f"https://{project.project_id}.{host}.sanity.io/{self._settings.versioned_path}"

    def _auth_headers(self, token: str | None) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _raise_for_status(self, response: HttpResponse, *, action: str) -> None:
        if response.ok:
            return

        body = response.text
        LOGGER.error(
            "Sanity API error",
            extra={"event": "store.error", "status": response.status, "body": body[:200]},
        )
        if response.status == 403 or self._is_permission_error(body):
            raise PermissionDeniedError(
                PERMISSION_HINT.format(action=action), status=response.status, body=body
            )
        if response.status == 409:
            raise ConcurrentModificationError(
                "The post was modified by someone else in the meantime. Reload and try again.",
                status=response.status,
                body=body,
            )
        raise RemoteFailureError(
            f"Sanity API error ({response.status}): {body}", status=response.status, body=body
        )

    def _is_permission_error(self, body: str) -> bool:
        try:
            data = json.loads(body)
        except (TypeError, ValueError):
            return False
        error = data.get("error") if isinstance(data, dict) else None
        if not isinstance(error, dict):
            return False
        description = str(error.get("description", "")).lower()
        return error.get("type") == "mutationError" and "permission" in description

    def _decode_json(self, response: HttpResponse) -> Any:
        try:
            return json.loads(response.text)
        except (TypeError, ValueError) as exc:
            raise MalformedResponseError(
                "Could not parse the content store response",
                details={"response": response.text[:200]},
            ) from exc
