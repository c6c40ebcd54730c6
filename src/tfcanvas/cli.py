from __future__ import annotations

import logging
import sys
from time import perf_counter
from typing import Any, Dict, Optional

from .config import RunConfig, load_run_config
from .design.io import load_design
from .design.store import Design
from .export.terraform import TerraformGenerator, write_terraform
from .logging import LogConfig, get_logger, setup_logging
from .registry import get_default_registry
from .util.console import (
    containment_table,
    hierarchy_tree,
    make_console,
    order_table,
    types_table,
    validation_table,
)
from .util.errors import ConfigError, ExitCode, as_exit_code
from .util.serialization import stable_json_dumps
from .validate import ConnectionValidator

LOG = get_logger(__name__)


class _StepTimers:
    def __init__(self) -> None:
        self._starts: Dict[str, float] = {}

    def start(self, key: str) -> None:
        self._starts[key] = perf_counter()

    def finish(self, key: str) -> Optional[int]:
        started = self._starts.pop(key, None)
        if started is None:
            return None
        return int((perf_counter() - started) * 1000)


def _log_event(
    logger: Any,
    level: int,
    message: str,
    *,
    step: str,
    phase: str,
    timers: Optional[_StepTimers] = None,
    **extra: Any,
) -> None:
    duration_ms = None
    if timers is not None:
        if phase == "start":
            timers.start(step)
        elif phase in {"complete", "error", "warning"}:
            duration_ms = timers.finish(step)
    payload: Dict[str, Any] = {"step": step, "phase": phase, "event": f"{step}.{phase}"}
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    payload.update(extra)
    logger.log(level, message, extra=payload)


def _print_json(payload: Any) -> None:
    sys.stdout.write(stable_json_dumps(payload, indent=2) + "\n")


def _load(cfg: RunConfig, timers: _StepTimers) -> Design:
    if cfg.design is None:
        raise ConfigError("A design file is required (positional argument, TFCANVAS_DESIGN or config 'design')")
    _log_event(LOG, logging.INFO, "Loading design", step="load", phase="start", timers=timers, path=str(cfg.design))
    design = load_design(cfg.design)
    _log_event(
        LOG,
        logging.INFO,
        "Design loaded",
        step="load",
        phase="complete",
        timers=timers,
        components=len(design.components),
        connections=len(design.connections),
    )
    return design


def cmd_types(cfg: RunConfig) -> int:
    registry = get_default_registry()
    if cfg.json_output:
        payload = []
        for ctype in registry.types():
            meta = registry.get_metadata(ctype)
            if meta is None:
                continue
            payload.append(
                {
                    "type": meta.type,
                    "category": meta.category,
                    "display_name": meta.display_name,
                    "is_container": meta.is_container,
                    "can_contain": meta.can_contain,
                    "must_be_contained_by": meta.must_be_contained_by,
                    "can_be_contained_by": meta.can_be_contained_by,
                    "allowed_connections": meta.allowed_connections,
                    "default_attributes": dict(meta.default_attributes),
                }
            )
        _print_json(payload)
        return int(ExitCode.OK)
    make_console().print(types_table(registry))
    return int(ExitCode.OK)


def cmd_validate(cfg: RunConfig) -> int:
    timers = _StepTimers()
    design = _load(cfg, timers)
    validator = ConnectionValidator(design.registry)

    _log_event(LOG, logging.INFO, "Validating connections", step="validate", phase="start", timers=timers)
    results = validator.replay(design.components, design.connections)
    issues = validator.check_containment(design.components, design.connections)
    rejected = [conn.id for conn, result in results if not result.valid]
    failed = bool(rejected) or (cfg.strict and bool(issues))
    _log_event(
        LOG,
        logging.WARNING if failed else logging.INFO,
        "Validation finished",
        step="validate",
        phase="warning" if failed else "complete",
        timers=timers,
        rejected=len(rejected),
        containment_issues=len(issues),
    )

    if cfg.json_output:
        _print_json(
            {
                "valid": not failed,
                "connections": [{**conn.to_dict(), **result.to_dict()} for conn, result in results],
                "containment_issues": [issue.to_dict() for issue in issues],
            }
        )
    else:
        console = make_console()
        if results:
            console.print(validation_table(results))
        if issues:
            console.print(containment_table(issues))
        console.print("[red]Validation failed[/red]" if failed else "[green]Design is valid[/green]")

    return int(ExitCode.VALIDATION_FAILED) if failed else int(ExitCode.OK)


def cmd_hierarchy(cfg: RunConfig) -> int:
    timers = _StepTimers()
    design = _load(cfg, timers)
    hierarchy = design.hierarchy()
    if cfg.json_output:
        _print_json(
            {
                "container_of": hierarchy.container_of,
                "placements": hierarchy.placements,
                "security_groups_of": hierarchy.security_groups_of,
                "standalone_subnets": [c.id for c in hierarchy.standalone_subnets],
                "standalone_resources": [c.id for c in hierarchy.standalone_resources],
            }
        )
        return int(ExitCode.OK)
    make_console().print(hierarchy_tree(hierarchy))
    return int(ExitCode.OK)


def cmd_order(cfg: RunConfig) -> int:
    timers = _StepTimers()
    design = _load(cfg, timers)
    deps = design.dependency_map()
    ordered = design.dependency_order()
    if cfg.json_output:
        _print_json({"order": [c.id for c in ordered], "dependencies": deps})
        return int(ExitCode.OK)
    make_console().print(order_table(ordered, deps))
    return int(ExitCode.OK)


def cmd_generate(cfg: RunConfig) -> int:
    timers = _StepTimers()
    design = _load(cfg, timers)

    _log_event(LOG, logging.INFO, "Generating Terraform", step="generate", phase="start", timers=timers)
    text = TerraformGenerator(design.registry, cfg.region).generate(design.components, design.connections)
    _log_event(
        LOG,
        logging.INFO,
        "Terraform generated",
        step="generate",
        phase="complete",
        timers=timers,
        region=cfg.region,
        chars=len(text),
    )

    if cfg.stdout:
        sys.stdout.write(text + "\n")
        return int(ExitCode.OK)

    _log_event(LOG, logging.INFO, "Writing Terraform", step="write", phase="start", timers=timers)
    path = write_terraform(cfg.outdir, text, cfg.output_name)
    _log_event(LOG, logging.INFO, "Terraform written", step="write", phase="complete", timers=timers, path=str(path))
    if cfg.json_output:
        _print_json({"path": str(path)})
    else:
        make_console().print(f"Wrote {path}")
    return int(ExitCode.OK)


COMMANDS = {
    "types": cmd_types,
    "validate": cmd_validate,
    "hierarchy": cmd_hierarchy,
    "order": cmd_order,
    "generate": cmd_generate,
}


def main(argv: Optional[list[str]] = None) -> None:
    try:
        command, cfg = load_run_config(argv=argv)
        setup_logging(LogConfig(level=cfg.log_level, json_logs=cfg.json_logs))

        handler = COMMANDS.get(command)
        if handler is None:
            raise ConfigError(f"Unknown command: {command}")
        sys.exit(handler(cfg))
    except SystemExit:
        raise
    except BrokenPipeError:
        # Common when users pipe to `head` or similar tools.
        sys.exit(0)
    except Exception as e:
        setup_logging(LogConfig())
        LOG.error("Execution failed", extra={"error": str(e)})
        sys.exit(as_exit_code(e))


if __name__ == "__main__":
    main()
