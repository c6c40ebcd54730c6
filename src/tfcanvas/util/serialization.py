from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import Any


def stable_json_dumps(obj: Any, *, indent: int | None = None) -> str:
    """
    Dump JSON with sort_keys=True so repeated runs produce identical files.
    """
    if indent is None:
        return json.dumps(sanitize_for_json(obj), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(sanitize_for_json(obj), sort_keys=True, indent=indent, ensure_ascii=False)


def sanitize_for_json(value: Any) -> Any:
    """
    Convert common non-JSON types (dataclasses, sets, paths, datetimes) to serializable forms.
    """
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    if is_dataclass(value) and not isinstance(value, type):
        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            return sanitize_for_json(to_dict())
        return sanitize_for_json(asdict(value))
    if isinstance(value, dict):
        return {str(k): sanitize_for_json(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(sanitize_for_json(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [sanitize_for_json(v) for v in value]
    return value
