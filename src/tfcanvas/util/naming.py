from __future__ import annotations

import re
from typing import Optional

_INVALID_IDENTIFIER_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_resource_name(name: Optional[str]) -> str:
    """
    Terraform identifiers may only hold letters, digits and underscores.
    Everything else becomes an underscore; the result is lowercased.
    """
    if not name:
        return ""
    return _INVALID_IDENTIFIER_CHARS.sub("_", str(name)).lower()


def short_id(component_id: str) -> str:
    return str(component_id)[-4:]


def default_label(prefix: str, component_id: str) -> str:
    return f"{prefix}-{short_id(component_id)}"


def display_name(component_type: str, name: Optional[str], component_id: str) -> str:
    if name:
        return name
    return f"{component_type.upper()}-{short_id(component_id)}"


def resource_name(prefix: str, name: Optional[str], component_id: str) -> str:
    """Identifier used as the second label of a resource block."""
    return sanitize_resource_name(name or default_label(prefix, component_id))


def hcl_string(value: object) -> str:
    """Quoted HCL string literal; template sequences are escaped so the text is never interpolated."""
    text = str(value)
    text = text.replace("\\", "\\\\").replace('"', '\\"')
    text = text.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    text = text.replace("${", "$${").replace("%{", "%%{")
    return f'"{text}"'
