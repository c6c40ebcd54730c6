from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..logging import get_logger
from ..registry import ComponentRegistry
from ..util.errors import DesignError
from ..util.serialization import sanitize_for_json, stable_json_dumps
from .store import Design

LOG = get_logger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


def _parse_design_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise DesignError(f"Design file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(text) or {}
        elif path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            # Try YAML first then JSON
            try:
                data = yaml.safe_load(text) or {}
            except yaml.YAMLError:
                data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise DesignError(f"Failed to parse design file {path}: {e}") from e
    if not isinstance(data, dict):
        raise DesignError("Top-level design must be an object")
    for key in ("components", "connections"):
        if key in data and data[key] is not None and not isinstance(data[key], list):
            raise DesignError(f"Design field '{key}' must be a list")
    return data


def load_design(path: Path, registry: Optional[ComponentRegistry] = None) -> Design:
    path = Path(path)
    data = _parse_design_file(path)
    design = Design.from_dict(data, registry=registry)
    LOG.debug(
        "Loaded design",
        extra={"path": str(path), "components": len(design.components), "connections": len(design.connections)},
    )
    return design


def write_design(path: Path, design: Design) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = design.to_dict()
    if path.suffix.lower() in YAML_SUFFIXES:
        text = yaml.safe_dump(sanitize_for_json(payload), sort_keys=False)
    else:
        text = stable_json_dumps(payload, indent=2) + "\n"
    path.write_text(text, encoding="utf-8")
    return path
