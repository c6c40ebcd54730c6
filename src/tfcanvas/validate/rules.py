from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

from ..design.schema import Component, Connection
from ..registry import ComponentRegistry
from ..registry.aws import SECURITY_GROUP, SECURITY_GROUP_TARGETS, SUBNET, VPC

WILDCARD = "*"


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: str

    def __bool__(self) -> bool:
        return self.valid

    def to_dict(self) -> Dict[str, object]:
        return {"valid": self.valid, "message": self.message}


def accept(message: str) -> ValidationResult:
    return ValidationResult(True, message)


def reject(message: str) -> ValidationResult:
    return ValidationResult(False, message)


@dataclass(frozen=True)
class RuleContext:
    source: Component
    target: Component
    components: Mapping[str, Component]
    connections: Sequence[Connection]
    registry: ComponentRegistry


# A rule returns accept/reject, or None to defer to the generic allow-list check.
Rule = Callable[[RuleContext], Optional[ValidationResult]]


def _has_container_of_type(ctx: RuleContext, child_id: str, container_type: str) -> bool:
    for conn in ctx.connections:
        if not conn.touches(child_id) or conn.from_id == conn.to_id:
            continue
        other = ctx.components.get(conn.other(child_id))
        if other is not None and other.type == container_type:
            return True
    return False


def containment_rule(ctx: RuleContext) -> Optional[ValidationResult]:
    """One container of a given type per child, unless the child allows multiple placements."""
    registry = ctx.registry
    if registry.can_contain(ctx.source.type, ctx.target.type):
        container, child = ctx.source, ctx.target
    elif registry.can_contain(ctx.target.type, ctx.source.type):
        container, child = ctx.target, ctx.source
    else:
        return None
    container_meta = registry.get_metadata(container.type)
    child_meta = registry.get_metadata(child.type)
    if container_meta is None or child_meta is None:
        return None
    if not child_meta.multi_placement and _has_container_of_type(ctx, child.id, container.type):
        return reject(f"This {child_meta.noun} is already placed in a {container_meta.noun}")
    return accept(f"This will place the {child_meta.noun} in this {container_meta.noun}")


def security_group_rule(ctx: RuleContext) -> Optional[ValidationResult]:
    resource = ctx.target if ctx.source.type == SECURITY_GROUP else ctx.source
    if resource.type not in SECURITY_GROUP_TARGETS:
        return reject(f"Security groups cannot be attached to {resource.type}")
    return accept("This will attach the security group to this resource")


class RuleTable:
    """
    Type-pair rules keyed by (source type, target type).

    Lookup order is the exact pair, then (source, "*"), then ("*", target).
    """

    def __init__(self) -> None:
        self._rules: Dict[Tuple[str, str], Rule] = {}

    def register(self, source_type: str, target_type: str, rule: Rule) -> None:
        self._rules[(source_type, target_type)] = rule

    def lookup(self, source_type: str, target_type: str) -> Optional[Rule]:
        for key in ((source_type, target_type), (source_type, WILDCARD), (WILDCARD, target_type)):
            rule = self._rules.get(key)
            if rule is not None:
                return rule
        return None

    def __len__(self) -> int:
        return len(self._rules)


def build_rule_table(registry: ComponentRegistry) -> RuleTable:
    table = RuleTable()
    types = registry.types()
    for container_type in types:
        if not registry.is_container(container_type):
            continue
        for child_type in types:
            if registry.can_contain(container_type, child_type):
                table.register(container_type, child_type, containment_rule)
                table.register(child_type, container_type, containment_rule)
    table.register(SECURITY_GROUP, WILDCARD, security_group_rule)
    table.register(WILDCARD, SECURITY_GROUP, security_group_rule)
    return table


_CONNECTION_DESCRIPTIONS = {
    ("ec2", "s3"): "Accesses data in",
    ("ec2", "rds"): "Connects to database in",
    ("lambda", "s3"): "Triggered by events from",
    ("lambda", "dynamodb"): "Reads/writes data to",
    ("vpc", "subnet"): "Contains",
    ("loadBalancer", "ec2"): "Routes traffic to",
}


def describe_connection(
    source: Optional[Component],
    target: Optional[Component],
    registry: ComponentRegistry,
) -> str:
    if source is None or target is None:
        return ""
    if registry.get_metadata(source.type) is None or registry.get_metadata(target.type) is None:
        return ""
    if target.type == SUBNET:
        return "Placed in"
    if target.type == VPC and source.type == SUBNET:
        return "Part of"
    if source.type == SECURITY_GROUP:
        return "Secures"
    if target.type == SECURITY_GROUP:
        return "Protected by"
    return _CONNECTION_DESCRIPTIONS.get((source.type, target.type), "Connected to")
