"""Serialization helpers for analysis output."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import TYPE_CHECKING

import orjson

if TYPE_CHECKING:
    from pathlib import Path


def _to_dict(obj: object) -> object:
    """Convert object to dict for JSON serialization."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    return obj


def dumps_json(obj: object, *, indent: bool = True) -> bytes:
    opts = orjson.OPT_SORT_KEYS
    if indent:
        opts |= orjson.OPT_INDENT_2
    return orjson.dumps(_to_dict(obj), option=opts)


def _write_json(path: Path, obj: object) -> None:
    path.write_bytes(dumps_json(obj))


def _write_text(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")
