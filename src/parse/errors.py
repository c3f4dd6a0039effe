"""Extraction errors and source reading."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class ExtractionError(Exception):
    """Raised when a single source file cannot be read or parsed."""


def read_source(file_path: Path) -> str:
    """Read a source file as UTF-8 text.

    Raises:
        ExtractionError: If the file is unreadable or not valid UTF-8.
    """
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read {file_path}: {exc}"
        raise ExtractionError(msg) from exc


__all__ = ["ExtractionError", "read_source"]
