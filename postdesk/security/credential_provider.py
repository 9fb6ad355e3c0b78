"""Secret lookup used to resolve store identifiers and the write token."""

from __future__ import annotations

from abc import ABC, abstractmethod
from configparser import ConfigParser
from os import environ
from pathlib import Path
from typing import Iterable, Mapping


class SecretNotFoundError(KeyError):
    """Raised when a secret cannot be resolved."""


class SecretProvider(ABC):
    """Abstract secret lookup contract.

    Keys are dotted (``sanity.api_write_token``). Blank values count as missing.
    """

    @abstractmethod
    def get_secret(self, key: str) -> str:
        """Return the secret associated with ``key``."""

    def has_secret(self, key: str) -> bool:
        try:
            self.get_secret(key)
        except SecretNotFoundError:
            return False
        return True


class EnvSecretProvider(SecretProvider):
    """Reads secrets from environment variables, ``sanity.dataset`` -> ``SANITY_DATASET``."""

    def __init__(self, env: Mapping[str, str] | None = None, *, prefix: str = "") -> None:
        self._env = env if env is not None else environ
        self._prefix = prefix

    def env_name(self, key: str) -> str:
        compound = f"{self._prefix}{key}" if self._prefix else key
        return compound.upper().replace(".", "_")

    def get_secret(self, key: str) -> str:
        value = self._env.get(self.env_name(key), "").strip()
        if not value:
            raise SecretNotFoundError(key)
        return value


class FileSecretProvider(SecretProvider):
    """Loads secrets from an INI file; ``sanity.dataset`` reads option ``dataset`` in ``[sanity]``."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._parser = ConfigParser()
        if path.exists():
            self._parser.read(path, encoding="utf-8")

    def get_secret(self, key: str) -> str:
        section, _, option = key.partition(".")
        if not section or not option:
            raise SecretNotFoundError(key)
        if self._parser.has_option(section, option):
            value = self._parser.get(section, option).strip()
            if value:
                return value
        raise SecretNotFoundError(key)


class MappingSecretProvider(SecretProvider):
    """Wraps a simple dictionary, mostly for tests."""

    def __init__(self, mapping: Mapping[str, str]) -> None:
        self._mapping = mapping

    def get_secret(self, key: str) -> str:
        value = (self._mapping.get(key) or "").strip()
        if not value:
            raise SecretNotFoundError(key)
        return value


class ChainedSecretProvider(SecretProvider):
    """Tries multiple providers until one returns a secret."""

    def __init__(self, providers: Iterable[SecretProvider]) -> None:
        self._providers = tuple(providers)

    def get_secret(self, key: str) -> str:
        for provider in self._providers:
            try:
                return provider.get_secret(key)
            except SecretNotFoundError:
                continue
        raise SecretNotFoundError(key)


def build_secret_provider(
    secrets_file: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> SecretProvider:
    """Environment first, then the optional INI secrets file."""
    providers: list[SecretProvider] = [EnvSecretProvider(env)]
    if secrets_file is not None:
        providers.append(FileSecretProvider(secrets_file))
    return ChainedSecretProvider(providers)


__all__ = [
    "ChainedSecretProvider",
    "EnvSecretProvider",
    "FileSecretProvider",
    "MappingSecretProvider",
    "SecretNotFoundError",
    "SecretProvider",
    "build_secret_provider",
]
