"""Credential resolution for the Sanity content store."""

from __future__ import annotations

from dataclasses import dataclass

from ...core.errors import MissingConfigError
from ...security import SecretNotFoundError, SecretProvider
from ...utils.logging import get_logger

LOGGER = get_logger(__name__)

PROJECT_ID_KEY = "sanity.project_id"
DATASET_KEY = "sanity.dataset"
WRITE_TOKEN_KEY = "sanity.api_write_token"


@dataclass(slots=True, frozen=True)
class SanityProject:
    project_id: str
    dataset: str


class SanityCredentialStore:
    """Resolves project id, dataset and write token through a secret provider."""

    def __init__(self, provider: SecretProvider) -> None:
        self._provider = provider

    def load_project(self) -> SanityProject:
        """Return the project coordinates or raise :class:`MissingConfigError`."""
        return SanityProject(
            project_id=self._require(PROJECT_ID_KEY),
            dataset=self._require(DATASET_KEY),
        )

    def load_write_token(self) -> str:
        """Return the write token; mutations and uploads cannot proceed without it."""
        try:
            return self._provider.get_secret(WRITE_TOKEN_KEY)
        except SecretNotFoundError as exc:
            raise MissingConfigError(
                "SANITY_API_WRITE_TOKEN",
                "SANITY_API_WRITE_TOKEN is not configured. Please add it to your environment "
                "variables with Editor or Administrator permissions.",
            ) from exc

    def load_read_token(self) -> str | None:
        """Reads work anonymously on public datasets; use the token when present."""
        try:
            return self._provider.get_secret(WRITE_TOKEN_KEY)
        except SecretNotFoundError:
            return None

    def describe(self) -> dict[str, str]:
        """Report which settings are present without exposing their values."""
        report: dict[str, str] = {}
        for key in (PROJECT_ID_KEY, DATASET_KEY):
            report[key] = "set" if self._provider.has_secret(key) else "missing"
        token = self.load_read_token()
        report[WRITE_TOKEN_KEY] = f"set (length: {len(token)})" if token else "missing"
        return report

    def _require(self, key: str) -> str:
        try:
            return self._provider.get_secret(key)
        except SecretNotFoundError as exc:
            setting = key.upper().replace(".", "_")
            LOGGER.error(
                "Missing content store configuration",
                extra={"event": "config.missing", "setting": setting},
            )
            raise MissingConfigError(setting) from exc
