# src/storage/writer.py — v1
"""Write canonical outputs to the local filesystem as JSON or JSONL."""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import BaseModel


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    return data


def write_json(path: Path, data: BaseModel | Any) -> None:
    """Write a model or plain data as indented JSON, creating parent dirs."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(_to_jsonable(data), indent=2, allow_nan=False)
    path.write_text(text, encoding="utf-8")


def write_jsonl(path: Path, records: Iterable[BaseModel | Any]) -> int:
    """Write one JSON document per line. Returns the number of records.

    An empty batch still creates the (empty) file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [json.dumps(_to_jsonable(r), allow_nan=False) for r in records]
    content = "\n".join(lines) + ("\n" if lines else "")
    path.write_text(content, encoding="utf-8")
    return len(lines)
