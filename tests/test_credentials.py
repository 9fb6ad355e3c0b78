from __future__ import annotations

from pathlib import Path

import pytest

from postdesk.core.errors import MissingConfigError
from postdesk.platforms.sanity import SanityCredentialStore, SanityProject
from postdesk.security import (
    EnvSecretProvider,
    FileSecretProvider,
    MappingSecretProvider,
    SecretNotFoundError,
    build_secret_provider,
)


def test_env_provider_maps_dotted_keys() -> None:
    provider = EnvSecretProvider({"SANITY_DATASET": "production", "SANITY_PROJECT_ID": "  "})

    assert provider.env_name("sanity.dataset") == "SANITY_DATASET"
    assert provider.get_secret("sanity.dataset") == "production"
    assert not provider.has_secret("sanity.project_id")


def test_file_provider_reads_ini_sections(tmp_path: Path) -> None:
    secrets = tmp_path / "secrets.ini"
    secrets.write_text("[sanity]\nproject_id = abc123\n", encoding="utf-8")

    provider = FileSecretProvider(secrets)

    assert provider.get_secret("sanity.project_id") == "abc123"
    with pytest.raises(SecretNotFoundError):
        provider.get_secret("sanity.dataset")


def test_environment_takes_precedence_over_file(tmp_path: Path) -> None:
    secrets = tmp_path / "secrets.ini"
    secrets.write_text("[sanity]\ndataset = staging\nproject_id = abc123\n", encoding="utf-8")

    provider = build_secret_provider(secrets, env={"SANITY_DATASET": "production"})

    assert provider.get_secret("sanity.dataset") == "production"
    assert provider.get_secret("sanity.project_id") == "abc123"


def test_load_project() -> None:
    store = SanityCredentialStore(
        MappingSecretProvider({"sanity.project_id": "abc123", "sanity.dataset": "production"})
    )

    assert store.load_project() == SanityProject(project_id="abc123", dataset="production")
    assert store.load_read_token() is None


def test_missing_write_token_names_the_setting() -> None:
    store = SanityCredentialStore(MappingSecretProvider({}))

    with pytest.raises(MissingConfigError) as excinfo:
        store.load_write_token()

    assert excinfo.value.setting == "SANITY_API_WRITE_TOKEN"
    assert "Editor or Administrator" in excinfo.value.message


def test_describe_never_reveals_values() -> None:
    store = SanityCredentialStore(
        MappingSecretProvider({"sanity.project_id": "abc123", "sanity.api_write_token": "secret"})
    )

    report = store.describe()

    assert report == {
        "sanity.project_id": "set",
        "sanity.dataset": "missing",
        "sanity.api_write_token": "set (length: 6)",
    }
    assert "secret" not in "".join(report.values())
