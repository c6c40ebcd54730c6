from __future__ import annotations

import argparse
import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .util.errors import ConfigError

# --------
# Defaults
# --------
DEFAULT_REGION = "us-west-2"
DEFAULT_OUTPUT_NAME = "main.tf"
ALLOWED_CONFIG_KEYS = {
    "design",
    "outdir",
    "output_name",
    "region",
    "stdout",
    "json_output",
    "strict",
    "json_logs",
    "log_level",
}
BOOL_CONFIG_KEYS = {"stdout", "json_output", "strict", "json_logs"}
PATH_CONFIG_KEYS = {"design", "outdir"}
STR_CONFIG_KEYS = {"output_name", "region", "log_level"}


@dataclass(frozen=True)
class RunConfig:
    design: Optional[Path] = None
    outdir: Path = Path(".")
    output_name: str = DEFAULT_OUTPUT_NAME
    region: str = DEFAULT_REGION

    # Output
    stdout: bool = False
    json_output: bool = False
    strict: bool = False  # containment issues fail `validate`

    # Logging
    json_logs: bool = False
    log_level: str = "INFO"


def _parse_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text) or {}
        elif path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            try:
                data = yaml.safe_load(text) or {}
            except yaml.YAMLError:
                data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Top-level config must be an object")
    return data


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    return raw


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip().lower()
    if not raw:
        return None
    return raw in {"1", "true", "yes", "on"}


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in {"1", "true", "yes", "on"}:
            return True
        if raw in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"Config field '{key}' must be a boolean")


def _normalize_config_file(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = sorted(set(data.keys()) - ALLOWED_CONFIG_KEYS)
    if unknown:
        warnings.warn(f"Unknown config keys ignored: {', '.join(unknown)}")
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in ALLOWED_CONFIG_KEYS:
            continue
        if value is None:
            normalized[key] = None
        elif key in BOOL_CONFIG_KEYS:
            normalized[key] = _coerce_bool(key, value)
        elif key in PATH_CONFIG_KEYS:
            if isinstance(value, (str, Path)):
                normalized[key] = value
            else:
                raise ValueError(f"Config field '{key}' must be a string path")
        elif key in STR_CONFIG_KEYS:
            if isinstance(value, str):
                normalized[key] = value
            else:
                raise ValueError(f"Config field '{key}' must be a string")
    return _compact_dict(normalized)


def _compact_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop keys with None values so they don't override lower-precedence config.
    """
    return {k: v for k, v in data.items() if v is not None}


def _merge_dicts(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(a)
    merged.update(b)
    return merged


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tfcanvas", description="AWS architecture designer core")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", type=Path, help="Optional YAML/JSON config file")
        p.add_argument(
            "--json-logs",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Enable JSON logs",
        )
        p.add_argument("--log-level", default=None, help="Log level (INFO, DEBUG, ...)")
        p.add_argument(
            "--json",
            dest="json_output",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Print machine-readable JSON instead of tables",
        )

    def add_design(p: argparse.ArgumentParser) -> None:
        p.add_argument("design", nargs="?", type=Path, default=None, help="Design file (YAML or JSON)")

    p_types = subparsers.add_parser("types", help="List the component catalog")
    add_common(p_types)

    p_val = subparsers.add_parser("validate", help="Replay and validate every connection in a design")
    add_common(p_val)
    add_design(p_val)
    p_val.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Fail when a component is missing its mandatory container",
    )

    p_hier = subparsers.add_parser("hierarchy", help="Show the inferred VPC/subnet/resource tree")
    add_common(p_hier)
    add_design(p_hier)

    p_order = subparsers.add_parser("order", help="Show the dependency-safe component order")
    add_common(p_order)
    add_design(p_order)

    p_gen = subparsers.add_parser("generate", help="Generate Terraform for a design")
    add_common(p_gen)
    add_design(p_gen)
    p_gen.add_argument("--outdir", type=Path, default=None, help="Output directory (default: current directory)")
    p_gen.add_argument("--output-name", default=None, help=f"Output file name (default {DEFAULT_OUTPUT_NAME})")
    p_gen.add_argument("--region", default=None, help=f"AWS provider region (default {DEFAULT_REGION})")
    p_gen.add_argument(
        "--stdout",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Print Terraform to stdout instead of writing a file",
    )
    return parser


def load_run_config(
    args: Optional[argparse.Namespace] = None,
    argv: Optional[list[str]] = None,
) -> Tuple[str, RunConfig]:
    """
    Build RunConfig by merging defaults, optional config file, env vars, and CLI args.
    Precedence (low -> high): defaults < config file < env < CLI.

    Returns:
      (command, RunConfig) where command is one of: types|validate|hierarchy|order|generate
    """
    ns = args if args is not None else build_parser().parse_args(argv)
    command = ns.command

    base: Dict[str, Any] = {
        "design": None,
        "outdir": None,
        "output_name": DEFAULT_OUTPUT_NAME,
        "region": DEFAULT_REGION,
        "stdout": False,
        "json_output": False,
        "strict": False,
        "json_logs": False,
        "log_level": "INFO",
    }

    file_cfg: Dict[str, Any] = {}
    if getattr(ns, "config", None):
        file_cfg = _normalize_config_file(_parse_config_file(Path(ns.config)))

    env_cfg: Dict[str, Any] = _compact_dict(
        {
            "design": _env_str("TFCANVAS_DESIGN"),
            "outdir": _env_str("TFCANVAS_OUTDIR"),
            "output_name": _env_str("TFCANVAS_OUTPUT_NAME"),
            "region": _env_str("TFCANVAS_REGION"),
            "strict": _env_bool("TFCANVAS_STRICT"),
            "json_logs": _env_bool("TFCANVAS_JSON_LOGS"),
            "log_level": _env_str("TFCANVAS_LOG_LEVEL"),
        }
    )

    cli_cfg: Dict[str, Any] = _compact_dict(
        {
            "design": getattr(ns, "design", None),
            "outdir": getattr(ns, "outdir", None),
            "output_name": getattr(ns, "output_name", None),
            "region": getattr(ns, "region", None),
            "stdout": getattr(ns, "stdout", None),
            "json_output": getattr(ns, "json_output", None),
            "strict": getattr(ns, "strict", None),
            "json_logs": getattr(ns, "json_logs", None),
            "log_level": getattr(ns, "log_level", None),
        }
    )

    merged = _merge_dicts(base, _merge_dicts(file_cfg, _merge_dicts(env_cfg, cli_cfg)))

    output_name = str(merged.get("output_name") or DEFAULT_OUTPUT_NAME)
    if Path(output_name).name != output_name:
        raise ValueError("output_name must be a plain file name, not a path")

    design_raw = merged.get("design")
    outdir_raw = merged.get("outdir")
    cfg = RunConfig(
        design=Path(design_raw) if design_raw else None,
        outdir=Path(outdir_raw) if outdir_raw else Path.cwd(),
        output_name=output_name,
        region=str(merged.get("region") or DEFAULT_REGION),
        stdout=bool(merged["stdout"]),
        json_output=bool(merged["json_output"]),
        strict=bool(merged["strict"]),
        json_logs=bool(merged["json_logs"]),
        log_level=(merged.get("log_level") or "INFO").upper(),
    )
    return command, cfg
