from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..export.terraform import DEFAULT_REGION, generate_infrastructure_code
from ..graph.dependencies import build_dependency_map, topo_sort
from ..graph.hierarchy import Hierarchy, resolve_hierarchy
from ..logging import get_logger
from ..registry import ComponentRegistry, get_default_registry
from ..util.errors import DesignError
from ..validate.rules import ValidationResult
from ..validate.validator import ConnectionValidator
from .schema import (
    Component,
    ComponentLike,
    Connection,
    ConnectionLike,
    coerce_components,
    coerce_connections,
)

LOG = get_logger(__name__)

_GEOMETRY_FIELDS = ("x", "y", "width", "height")


class Design:
    """
    Mutable component/connection state for one canvas.

    Every edge is validated before it is committed and removing a component
    removes the edges that reference it, so no connection ever dangles.
    """

    def __init__(
        self,
        registry: Optional[ComponentRegistry] = None,
        components: Iterable[ComponentLike] = (),
        connections: Iterable[ConnectionLike] = (),
    ) -> None:
        self.registry = registry or get_default_registry()
        self._components: Dict[str, Component] = {}
        self._connections: Dict[str, Connection] = {}
        for comp in coerce_components(components):
            if comp.id in self._components:
                raise DesignError(f"Duplicate component id: {comp.id}")
            self._components[comp.id] = comp
        pairs = set()
        for conn in coerce_connections(connections):
            if conn.from_id not in self._components or conn.to_id not in self._components:
                LOG.warning("Dropping connection with a missing endpoint", extra={"connection": conn.id})
                continue
            if conn.id in self._connections:
                raise DesignError(f"Duplicate connection id: {conn.id}")
            if conn.from_id == conn.to_id:
                LOG.warning("Dropping self connection", extra={"connection": conn.id})
                continue
            if conn.pair in pairs:
                LOG.warning("Dropping duplicate connection", extra={"connection": conn.id})
                continue
            pairs.add(conn.pair)
            self._connections[conn.id] = conn

    @property
    def components(self) -> List[Component]:
        return list(self._components.values())

    @property
    def connections(self) -> List[Connection]:
        return list(self._connections.values())

    def __len__(self) -> int:
        return len(self._components)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._components

    def get(self, component_id: str) -> Optional[Component]:
        return self._components.get(component_id)

    def _require(self, component_id: str) -> Component:
        comp = self._components.get(component_id)
        if comp is None:
            raise DesignError(f"Unknown component id: {component_id}")
        return comp

    def add_component(
        self,
        component_type: str,
        *,
        id: Optional[str] = None,
        x: float = 0.0,
        y: float = 0.0,
        name: Optional[str] = None,
        **attributes: Any,
    ) -> Component:
        meta = self.registry.get_metadata(component_type)
        if meta is None:
            raise DesignError(f"Unknown component type: {component_type}")
        cid = id or f"{component_type}-{uuid.uuid4().hex[:12]}"
        if cid in self._components:
            raise DesignError(f"Duplicate component id: {cid}")
        merged = self.registry.get_default_attributes(component_type)
        merged.update(attributes)
        width, height = meta.size
        comp = Component(
            id=cid,
            type=component_type,
            x=float(x),
            y=float(y),
            width=float(width),
            height=float(height),
            name=name,
            attributes=merged,
        )
        self._components[cid] = comp
        LOG.debug("Added component", extra={"component": cid, "component_type": component_type})
        return comp

    def update_component(self, component_id: str, **changes: Any) -> Component:
        comp = self._require(component_id)
        for key in ("id", "type"):
            if key in changes and changes[key] != getattr(comp, key):
                raise DesignError(f"Component {key} cannot be changed: {component_id}")
        field_changes: Dict[str, Any] = {}
        attributes = dict(comp.attributes)
        for key, value in changes.items():
            if key in ("id", "type"):
                continue
            if key in _GEOMETRY_FIELDS:
                field_changes[key] = float(value)
            elif key == "name":
                field_changes[key] = str(value) if value else None
            else:
                attributes[key] = value
        updated = replace(comp, attributes=attributes, **field_changes)
        self._components[component_id] = updated
        return updated

    def remove_component(self, component_id: str) -> List[Connection]:
        """Remove a component and every connection touching it; returns the removed connections."""
        self._require(component_id)
        removed = [c for c in self._connections.values() if c.touches(component_id)]
        for conn in removed:
            del self._connections[conn.id]
        del self._components[component_id]
        LOG.debug(
            "Removed component",
            extra={"component": component_id, "connections_removed": len(removed)},
        )
        return removed

    def check_connection(self, from_id: str, to_id: str) -> ValidationResult:
        return ConnectionValidator(self.registry).validate(
            self._components.get(from_id),
            self._components.get(to_id),
            self.components,
            self.connections,
        )

    def connect(self, from_id: str, to_id: str, *, id: Optional[str] = None) -> ValidationResult:
        """Validate and commit an edge. Returns the ValidationResult; nothing is stored on rejection."""
        result = self.check_connection(from_id, to_id)
        if not result.valid:
            LOG.info(
                "Connection rejected",
                extra={"source": from_id, "target": to_id, "reason": result.message},
            )
            return result
        conn_id = id or f"{from_id}-{to_id}"
        if conn_id in self._connections:
            raise DesignError(f"Duplicate connection id: {conn_id}")
        self._connections[conn_id] = Connection(id=conn_id, from_id=from_id, to_id=to_id)
        return result

    def disconnect(self, connection_id: str) -> Connection:
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            raise DesignError(f"Unknown connection id: {connection_id}")
        return conn

    def clear(self) -> None:
        self._components.clear()
        self._connections.clear()

    def hierarchy(self) -> Hierarchy:
        return resolve_hierarchy(self.components, self.connections, self.registry)

    def dependency_map(self) -> Dict[str, List[str]]:
        return build_dependency_map(self.components, self.connections, self.registry)

    def dependency_order(self) -> List[Component]:
        return topo_sort(self.components, self.dependency_map())

    def terraform(self, region: str = DEFAULT_REGION) -> str:
        return generate_infrastructure_code(self.components, self.connections, self.registry, region)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "components": [c.to_dict() for c in self._components.values()],
            "connections": [c.to_dict() for c in self._connections.values()],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], registry: Optional[ComponentRegistry] = None) -> Design:
        if not isinstance(data, Mapping):
            raise DesignError("Design document must be a mapping")
        components = data.get("components") or []
        connections = data.get("connections") or []
        if not isinstance(components, list) or not isinstance(connections, list):
            raise DesignError("Design 'components' and 'connections' must be lists")
        return cls(registry=registry, components=components, connections=connections)
