from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from ..design.schema import Component, ComponentLike, ConnectionLike, coerce_components
from ..registry import ComponentRegistry
from .hierarchy import Hierarchy, resolve_hierarchy


def dependency_map_from_hierarchy(hierarchy: Hierarchy) -> Dict[str, List[str]]:
    deps: Dict[str, List[str]] = {}
    for cid in hierarchy.components:
        entry: List[str] = []
        for parent_id in hierarchy.placements.get(cid, ()):
            if parent_id not in entry:
                entry.append(parent_id)
        for sg_id in hierarchy.security_groups_of.get(cid, ()):
            if sg_id not in entry:
                entry.append(sg_id)
        deps[cid] = entry
    return deps


def build_dependency_map(
    components: Iterable[ComponentLike],
    connections: Iterable[ConnectionLike],
    registry: Optional[ComponentRegistry] = None,
) -> Dict[str, List[str]]:
    """
    id -> ids it depends on.

    A placed component depends on every container it was placed in and an
    attached resource depends on its security groups. Other edges add nothing.
    """
    return dependency_map_from_hierarchy(resolve_hierarchy(components, connections, registry))


def topo_sort(
    components: Iterable[ComponentLike],
    dependency_map: Mapping[str, Sequence[str]],
) -> List[Component]:
    """
    Depth-first post-order: dependencies come before dependents, otherwise
    input order is kept. Unknown dependency ids are skipped and cycles stop at
    the visited guard.
    """
    comps = coerce_components(components)
    by_id: Dict[str, Component] = {}
    for comp in comps:
        by_id.setdefault(comp.id, comp)

    visited: Set[str] = set()
    ordered: List[Component] = []

    def _visit(cid: str) -> None:
        if cid in visited:
            return
        visited.add(cid)
        for dep in dependency_map.get(cid, ()):
            if dep in by_id:
                _visit(dep)
        ordered.append(by_id[cid])

    for comp in comps:
        _visit(comp.id)
    return ordered
