"""Helpers for loading configuration and static settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

try:  # pragma: no cover - Python 3.11+ includes tomllib
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for older versions
    import tomli as tomllib  # type: ignore[no-redef]

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_NAME = "config.toml"
CONFIG_ENV_VAR = "POSTDESK_CONFIG"

DEFAULT_CATEGORIES = ("controllers", "games", "swedish", "cinematic", "music", "misc")


@dataclass(slots=True)
class HttpSettings:
    timeout: float = 30.0
    max_attempts: int = 1
    backoff_factor: float = 1.5


@dataclass(slots=True)
class SanitySettings:
    """Connection details for the remote content store that are not secrets."""

    api_version: str = "2024-12-01"
    use_cdn: bool = False
    revision_guard: bool = True
    document_type: str = "post"
    secrets_file: Path | None = None

    @property
    def versioned_path(self) -> str:
        version = self.api_version
        return version if version.startswith("v") else f"v{version}"


@dataclass(slots=True)
class DashboardSettings:
    categories: tuple[str, ...] = DEFAULT_CATEGORIES
    export_prefix: str = "sanity"
    export_dir: Path = field(default_factory=lambda: PROJECT_ROOT / "data" / "exports")


@dataclass(slots=True)
class AppConfig:
    sanity: SanitySettings = field(default_factory=SanitySettings)
    http: HttpSettings = field(default_factory=HttpSettings)
    dashboard: DashboardSettings = field(default_factory=DashboardSettings)
    source: Path | None = None


def _to_path(value: str | None, *, fallback: Path | None) -> Path | None:
    if not value:
        return fallback
    candidate = Path(value).expanduser()
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _config_path(explicit: str | os.PathLike[str] | None = None) -> tuple[Path, bool]:
    """Return the config path and whether it was requested explicitly."""
    candidate: Path
    requested = True
    if explicit:
        candidate = Path(explicit)
    else:
        env_value = os.environ.get(CONFIG_ENV_VAR)
        if env_value:
            candidate = Path(env_value)
        else:
            candidate = PROJECT_ROOT / DEFAULT_CONFIG_NAME
            requested = False
    path = candidate if candidate.is_absolute() else PROJECT_ROOT / candidate
    return path, requested


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _as_bool(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _categories(raw: Iterable[Any] | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_CATEGORIES
    seen: list[str] = []
    for item in raw:
        value = str(item).strip()
        if value and value not in seen:
            seen.append(value)
    return tuple(seen) or DEFAULT_CATEGORIES


def build_config(data: dict[str, Any], *, source: Path | None = None) -> AppConfig:
    """Build an :class:`AppConfig` from an already parsed mapping."""
    sanity_section = data.get("sanity", {})
    http_section = data.get("http", {})
    dashboard_section = data.get("dashboard", {})

    sanity = SanitySettings(
        api_version=str(sanity_section.get("api_version", "2024-12-01")),
        use_cdn=_as_bool(sanity_section.get("use_cdn"), default=False),
        revision_guard=_as_bool(sanity_section.get("revision_guard"), default=True),
        document_type=str(sanity_section.get("document_type", "post")),
        secrets_file=_to_path(sanity_section.get("secrets_file"), fallback=None),
    )

    http_settings = HttpSettings(
        timeout=float(http_section.get("timeout", 30)),
        max_attempts=max(1, int(http_section.get("max_attempts", 1))),
        backoff_factor=float(http_section.get("backoff_factor", 1.5)),
    )

    dashboard = DashboardSettings(
        categories=_categories(dashboard_section.get("categories")),
        export_prefix=str(dashboard_section.get("export_prefix", "sanity")),
        export_dir=_to_path(
            dashboard_section.get("export_dir"), fallback=PROJECT_ROOT / "data" / "exports"
        )
        or PROJECT_ROOT / "data" / "exports",
    )

    return AppConfig(sanity=sanity, http=http_settings, dashboard=dashboard, source=source)


def load_config(config_path: str | os.PathLike[str] | None = None) -> AppConfig:
    path, requested = _config_path(config_path)
    if not requested and not path.exists():
        return build_config({})
    return build_config(_load_toml(path), source=path)
