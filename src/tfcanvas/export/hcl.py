from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional

from ..registry.base import VariableSpec
from ..util.naming import hcl_string

_VAR_REF_RE = re.compile(r"\bvar\.([A-Za-z_][A-Za-z0-9_]*)")
_STRING_LITERAL_RE = re.compile(r'"(?:[^"\\\n]|\\.)*"')


def hcl_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return hcl_string(value)


def format_provider_block(region: str) -> str:
    return "\n".join(['provider "aws" {', f"  region = {hcl_string(region)}", "}"])


def format_variable(spec: VariableSpec) -> str:
    lines = [
        f'variable "{spec.name}" {{',
        f"  description = {hcl_string(spec.description)}",
        f"  type        = {spec.type}",
    ]
    if spec.default is not None:
        lines.append(f"  default     = {hcl_value(spec.default)}")
    if spec.sensitive:
        lines.append("  sensitive   = true")
    lines.append("}")
    return "\n".join(lines)


def format_undeclared_variable(name: str) -> str:
    return "\n".join([f'variable "{name}" {{', "  type = string", "}"])


def format_output(name: str, description: str, value: str) -> str:
    return "\n".join(
        [
            f'output "{name}" {{',
            f"  description = {hcl_string(description)}",
            f"  value       = {value}",
            "}",
        ]
    )


def find_variable_references(text: str) -> List[str]:
    """Names referenced as var.<name> outside string literals, deduplicated in first-reference order."""
    seen: List[str] = []
    code = _STRING_LITERAL_RE.sub('""', text or "")
    for match in _VAR_REF_RE.finditer(code):
        name = match.group(1)
        if name not in seen:
            seen.append(name)
    return seen


def comment(text: str) -> str:
    return f"// {text}"


def join_blocks(blocks: Iterable[Optional[str]]) -> str:
    return "\n\n".join(b for b in blocks if b)


def format_terraform_code(
    title: str,
    provider: str,
    variables: Iterable[str],
    resources: Iterable[str],
    outputs: Iterable[str],
) -> str:
    """Section order is fixed; empty sections are dropped."""
    return join_blocks(
        [
            f"# {title}",
            provider,
            join_blocks(variables),
            join_blocks(resources),
            join_blocks(outputs),
        ]
    )
