from __future__ import annotations

from .design.schema import Component, Connection
from .design.store import Design
from .export.terraform import TerraformGenerator, generate_infrastructure_code
from .graph.dependencies import build_dependency_map, topo_sort
from .graph.hierarchy import Hierarchy, HierarchyResolver, resolve_hierarchy
from .registry import ComponentRegistry, get_default_registry
from .validate import ConnectionValidator, ValidationResult, validate_connection

__version__ = "0.1.0"

__all__ = [
    "Component",
    "ComponentRegistry",
    "Connection",
    "ConnectionValidator",
    "Design",
    "Hierarchy",
    "HierarchyResolver",
    "TerraformGenerator",
    "ValidationResult",
    "build_dependency_map",
    "generate_infrastructure_code",
    "get_default_registry",
    "resolve_hierarchy",
    "topo_sort",
    "validate_connection",
]
