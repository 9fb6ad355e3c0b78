"""Filesystem helpers."""

from __future__ import annotations

from pathlib import Path


def ensure_parent(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def read_text(path: Path, *, encoding: str = "utf-8-sig") -> str:
    # utf-8-sig strips the BOM spreadsheet tools prepend to CSV exports
    with path.open("r", encoding=encoding, newline="") as fp:
        return fp.read()


def write_text(path: Path, data: str, *, encoding: str = "utf-8") -> Path:
    ensure_parent(path)
    with path.open("w", encoding=encoding, newline="") as fp:
        fp.write(data)
    return path
