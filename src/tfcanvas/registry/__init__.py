from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from .base import ComponentMetadata, OutputSpec, VariableSpec


class ComponentRegistry:
    """
    Read-only catalog mapping component type strings to ComponentMetadata.

    Built once from a list of entries and never mutated afterwards. Lookups for
    unknown types degrade to None or an empty value instead of raising.
    """

    def __init__(
        self,
        entries: Iterable[ComponentMetadata],
        variables: Iterable[VariableSpec] = (),
    ) -> None:
        by_type: Dict[str, ComponentMetadata] = {}
        for entry in entries:
            if entry.type in by_type:
                raise ValueError(f"Duplicate component type in registry: {entry.type}")
            by_type[entry.type] = entry
        self._entries: Mapping[str, ComponentMetadata] = MappingProxyType(by_type)
        self._variables: Mapping[str, VariableSpec] = MappingProxyType({v.name: v for v in variables})

    def __contains__(self, component_type: object) -> bool:
        return component_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def types(self) -> List[str]:
        return list(self._entries.keys())

    def get_metadata(self, component_type: Optional[str]) -> Optional[ComponentMetadata]:
        if not component_type:
            return None
        return self._entries.get(component_type)

    def get_default_attributes(self, component_type: Optional[str]) -> Dict[str, Any]:
        meta = self.get_metadata(component_type)
        return dict(meta.default_attributes) if meta else {}

    def categories(self) -> Dict[str, List[str]]:
        out: Dict[str, List[str]] = {}
        for meta in self._entries.values():
            out.setdefault(meta.category, []).append(meta.type)
        return out

    def is_container(self, component_type: Optional[str]) -> bool:
        meta = self.get_metadata(component_type)
        return bool(meta and meta.is_container)

    def can_contain(self, container_type: Optional[str], child_type: Optional[str]) -> bool:
        container = self.get_metadata(container_type)
        if container is None or not container.is_container or not child_type:
            return False
        if child_type in container.can_contain:
            return True
        child = self.get_metadata(child_type)
        if child is None:
            return False
        return container.type in child.must_be_contained_by or container.type in child.can_be_contained_by

    def must_be_contained_by(self, component_type: Optional[str]) -> FrozenSet[str]:
        meta = self.get_metadata(component_type)
        return meta.must_be_contained_by if meta else frozenset()

    def is_allowed(self, source_type: Optional[str], target_type: Optional[str]) -> bool:
        source = self.get_metadata(source_type)
        target = self.get_metadata(target_type)
        if source is None or target is None:
            return False
        return target.type in source.allowed_connections or source.type in target.allowed_connections

    def variable(self, name: str) -> Optional[VariableSpec]:
        return self._variables.get(name)

    def variables(self) -> List[VariableSpec]:
        return list(self._variables.values())


_default_registry: Optional[ComponentRegistry] = None


def get_default_registry() -> ComponentRegistry:
    global _default_registry
    if _default_registry is None:
        # Imported here: the catalog pulls in every template module.
        from .aws import VARIABLES, aws_catalog

        _default_registry = ComponentRegistry(aws_catalog(), VARIABLES)
    return _default_registry


__all__ = [
    "ComponentMetadata",
    "ComponentRegistry",
    "OutputSpec",
    "VariableSpec",
    "get_default_registry",
]
