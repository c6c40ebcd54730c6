from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..design.schema import (
    Component,
    ComponentLike,
    Connection,
    ConnectionLike,
    coerce_component,
    coerce_components,
    coerce_connections,
    index_components,
)
from ..graph.hierarchy import resolve_hierarchy
from ..logging import get_logger
from ..registry import ComponentRegistry, get_default_registry
from .rules import RuleContext, RuleTable, ValidationResult, accept, build_rule_table, describe_connection, reject

LOG = get_logger(__name__)


@dataclass(frozen=True)
class ContainmentIssue:
    component_id: str
    component_type: str
    required: FrozenSet[str]
    message: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "component_id": self.component_id,
            "component_type": self.component_type,
            "required": sorted(self.required),
            "message": self.message,
        }


def would_create_cycle(source_id: str, target_id: str, connections: Iterable[Connection]) -> bool:
    """Single hop only: true when the reverse edge target -> source already exists."""
    return any(c.from_id == target_id and c.to_id == source_id for c in connections)


class ConnectionValidator:
    """
    Decides whether an edge between two components may be committed.

    Pure: never mutates its inputs and never raises on malformed data.
    """

    def __init__(self, registry: Optional[ComponentRegistry] = None, rules: Optional[RuleTable] = None) -> None:
        self.registry = registry or get_default_registry()
        self.rules = rules if rules is not None else build_rule_table(self.registry)

    def validate(
        self,
        source: Optional[ComponentLike],
        target: Optional[ComponentLike],
        components: Iterable[ComponentLike],
        connections: Iterable[ConnectionLike],
    ) -> ValidationResult:
        src = coerce_component(source)
        dst = coerce_component(target)
        if src is None or dst is None:
            return reject("Both source and target components must exist")
        if src.id == dst.id:
            return reject("A component cannot connect to itself")

        conns = coerce_connections(connections)
        pair = frozenset((src.id, dst.id))
        if any(c.pair == pair for c in conns):
            return reject("A connection between these components already exists")

        index = index_components(coerce_components(components))
        index.setdefault(src.id, src)
        index.setdefault(dst.id, dst)

        result = self._check_rules(src, dst, index, conns)
        if not result.valid:
            LOG.debug(
                "Connection rejected",
                extra={"source": src.id, "target": dst.id, "reason": result.message},
            )
            return result

        if would_create_cycle(src.id, dst.id, conns):
            return reject("This connection would create a circular dependency")
        return result

    def _check_rules(
        self,
        src: Component,
        dst: Component,
        index: Dict[str, Component],
        conns: Sequence[Connection],
    ) -> ValidationResult:
        rule = self.rules.lookup(src.type, dst.type)
        if rule is not None:
            ctx = RuleContext(source=src, target=dst, components=index, connections=conns, registry=self.registry)
            outcome = rule(ctx)
            if outcome is not None:
                return outcome

        src_meta = self.registry.get_metadata(src.type)
        if src_meta is None:
            return reject(f"Unknown source component type: {src.type}")
        dst_meta = self.registry.get_metadata(dst.type)
        if dst_meta is None:
            return reject(f"Unknown target component type: {dst.type}")
        if not self.registry.is_allowed(src.type, dst.type):
            return reject(f"{src_meta.display_name} cannot connect to {dst_meta.display_name}")
        return accept(describe_connection(src, dst, self.registry))

    def replay(
        self,
        components: Iterable[ComponentLike],
        connections: Iterable[ConnectionLike],
    ) -> List[Tuple[Connection, ValidationResult]]:
        """
        Validate each edge against the edges accepted before it, in input order,
        the way an editor commits them one at a time.
        """
        comps = coerce_components(components)
        index = index_components(comps)
        accepted: List[Connection] = []
        out: List[Tuple[Connection, ValidationResult]] = []
        for conn in coerce_connections(connections):
            result = self.validate(index.get(conn.from_id), index.get(conn.to_id), comps, accepted)
            if result.valid:
                accepted.append(conn)
            out.append((conn, result))
        return out

    def check_containment(
        self,
        components: Iterable[ComponentLike],
        connections: Iterable[ConnectionLike],
    ) -> List[ContainmentIssue]:
        """Components whose mandatory container is missing."""
        hierarchy = resolve_hierarchy(components, connections, self.registry)
        issues: List[ContainmentIssue] = []
        for comp in hierarchy.components.values():
            required = self.registry.must_be_contained_by(comp.type)
            if not required:
                continue
            placed_types = {hierarchy.components[p].type for p in hierarchy.placements.get(comp.id, ())}
            if placed_types & required:
                continue
            nouns = []
            for ctype in sorted(required):
                meta = self.registry.get_metadata(ctype)
                nouns.append(meta.noun if meta else ctype)
            issues.append(
                ContainmentIssue(
                    component_id=comp.id,
                    component_type=comp.type,
                    required=required,
                    message=f"{comp.display_name} must be placed in a {' or '.join(nouns)}",
                )
            )
        return issues


def validate_connection(
    source: Optional[ComponentLike],
    target: Optional[ComponentLike],
    components: Iterable[ComponentLike],
    connections: Iterable[ConnectionLike],
    registry: Optional[ComponentRegistry] = None,
) -> ValidationResult:
    return ConnectionValidator(registry).validate(source, target, components, connections)


def replay_connections(
    components: Iterable[ComponentLike],
    connections: Iterable[ConnectionLike],
    registry: Optional[ComponentRegistry] = None,
) -> List[Tuple[Connection, ValidationResult]]:
    return ConnectionValidator(registry).replay(components, connections)


def check_containment(
    components: Iterable[ComponentLike],
    connections: Iterable[ConnectionLike],
    registry: Optional[ComponentRegistry] = None,
) -> List[ContainmentIssue]:
    return ConnectionValidator(registry).check_containment(components, connections)
