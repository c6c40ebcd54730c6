from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..design.schema import (
    Component,
    ComponentLike,
    Connection,
    ConnectionLike,
    coerce_components,
    coerce_connections,
    index_components,
)
from ..logging import get_logger
from ..registry import ComponentRegistry, get_default_registry
from ..registry.aws import SECURITY_GROUP, SUBNET, VPC

LOG = get_logger(__name__)

_STRUCTURAL_TYPES = frozenset({VPC, SUBNET, SECURITY_GROUP})


@dataclass(frozen=True)
class Hierarchy:
    """
    Containment view derived from a flat component/connection list.

    ``container_of`` holds the single container used for rendering (the last
    containment edge seen for a child). ``placements`` keeps every container a
    component was placed in, in edge order.
    """

    components: Mapping[str, Component]
    connections: Tuple[Connection, ...] = ()
    container_of: Mapping[str, str] = field(default_factory=dict)
    placements: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    children: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    security_groups_of: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    vpcs: Tuple[Component, ...] = ()
    subnets: Tuple[Component, ...] = ()
    security_groups: Tuple[Component, ...] = ()
    standalone_subnets: Tuple[Component, ...] = ()
    standalone_resources: Tuple[Component, ...] = ()

    def get(self, component_id: str) -> Optional[Component]:
        return self.components.get(component_id)

    def container(self, component_id: str) -> Optional[Component]:
        parent_id = self.container_of.get(component_id)
        return self.components.get(parent_id) if parent_id else None

    def children_of(self, container_id: str, component_type: Optional[str] = None) -> List[Component]:
        out: List[Component] = []
        for child_id in self.children.get(container_id, ()):
            child = self.components[child_id]
            if component_type is None or child.type == component_type:
                out.append(child)
        return out

    def security_groups_for(self, component_id: str) -> List[Component]:
        return [self.components[sg_id] for sg_id in self.security_groups_of.get(component_id, ())]

    def vpc_for(self, component_id: str) -> Optional[Component]:
        """Walk up the containers until a VPC is reached."""
        seen = set()
        current = self.components.get(component_id)
        while current is not None and current.id not in seen:
            if current.type == VPC:
                return current
            seen.add(current.id)
            current = self.container(current.id)
        return None

    def discovered_vpc_for_security_group(
        self,
        sg_id: str,
        connections: Optional[Iterable[ConnectionLike]] = None,
    ) -> Optional[Component]:
        """
        A security group has no containment edge of its own. Its VPC is a VPC
        connected to it directly, otherwise the VPC of the first resource it is
        attached to.
        """
        conns = coerce_connections(connections) if connections is not None else list(self.connections)
        touching = [c for c in conns if c.touches(sg_id) and c.from_id != c.to_id]
        for conn in touching:
            other = self.components.get(conn.other(sg_id))
            if other is not None and other.type == VPC:
                return other
        for conn in touching:
            other_id = conn.other(sg_id)
            if other_id not in self.components:
                continue
            vpc = self.vpc_for(other_id)
            if vpc is not None:
                return vpc
        return None


class HierarchyResolver:
    """Infers VPC -> Subnet -> Resource containment from connections."""

    def __init__(self, registry: Optional[ComponentRegistry] = None) -> None:
        self.registry = registry or get_default_registry()

    def _containment(self, a: Component, b: Component) -> Optional[Tuple[Component, Component]]:
        if self.registry.can_contain(a.type, b.type):
            return a, b
        if self.registry.can_contain(b.type, a.type):
            return b, a
        return None

    def resolve(
        self,
        components: Iterable[ComponentLike],
        connections: Iterable[ConnectionLike],
    ) -> Hierarchy:
        index = index_components(coerce_components(components))
        conns = coerce_connections(connections)

        container_of: Dict[str, str] = {}
        placements: Dict[str, List[str]] = {}
        security_groups_of: Dict[str, List[str]] = {}

        for conn in conns:
            a = index.get(conn.from_id)
            b = index.get(conn.to_id)
            if a is None or b is None:
                LOG.debug("Ignoring dangling connection", extra={"connection": conn.id})
                continue
            if a.id == b.id:
                continue

            if SECURITY_GROUP in (a.type, b.type):
                if a.type == b.type:
                    continue
                sg, other = (a, b) if a.type == SECURITY_GROUP else (b, a)
                # A VPC edge only locates the group; it is not an attachment.
                if other.type == VPC:
                    continue
                attached = security_groups_of.setdefault(other.id, [])
                if sg.id not in attached:
                    attached.append(sg.id)
                continue

            pair = self._containment(a, b)
            if pair is None:
                continue
            container, child = pair
            if child.id in container_of and container_of[child.id] != container.id:
                LOG.debug(
                    "Component placed in more than one container; last edge wins",
                    extra={"component": child.id, "container": container.id},
                )
            container_of[child.id] = container.id
            placed = placements.setdefault(child.id, [])
            if container.id not in placed:
                placed.append(container.id)

        children: Dict[str, List[str]] = {}
        for comp in index.values():
            parent_id = container_of.get(comp.id)
            if parent_id is not None:
                children.setdefault(parent_id, []).append(comp.id)

        vpcs = tuple(c for c in index.values() if c.type == VPC)
        subnets = tuple(c for c in index.values() if c.type == SUBNET)
        security_groups = tuple(c for c in index.values() if c.type == SECURITY_GROUP)

        return Hierarchy(
            components=index,
            connections=tuple(conns),
            container_of=container_of,
            placements={k: tuple(v) for k, v in placements.items()},
            children={k: tuple(v) for k, v in children.items()},
            security_groups_of={k: tuple(v) for k, v in security_groups_of.items()},
            vpcs=vpcs,
            subnets=subnets,
            security_groups=security_groups,
            standalone_subnets=tuple(s for s in subnets if s.id not in container_of),
            standalone_resources=tuple(
                c for c in index.values() if c.type not in _STRUCTURAL_TYPES and c.id not in container_of
            ),
        )


def resolve_hierarchy(
    components: Iterable[ComponentLike],
    connections: Iterable[ConnectionLike],
    registry: Optional[ComponentRegistry] = None,
) -> Hierarchy:
    return HierarchyResolver(registry).resolve(components, connections)
