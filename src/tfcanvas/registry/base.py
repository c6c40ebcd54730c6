from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional, Protocol, Sequence, Tuple

from ..design.schema import Component


class Template(Protocol):
    """
    Renders one component as Terraform text.

    Templates are pure: the output depends only on the node, its parent container
    (None when standalone) and the security groups attached to it.
    """

    def __call__(
        self,
        node: Component,
        parent: Optional[Component],
        security_groups: Sequence[Component],
    ) -> str:
        ...


@dataclass(frozen=True)
class OutputSpec:
    suffix: str
    description: str
    attribute: str
    splat: bool = False


@dataclass(frozen=True)
class VariableSpec:
    name: str
    description: str
    type: str = "string"
    default: Any = None
    sensitive: bool = False


@dataclass(frozen=True)
class ComponentMetadata:
    type: str
    category: str
    display_name: str
    noun: str
    terraform_type: str
    name_prefix: str
    allowed_connections: FrozenSet[str] = frozenset()
    is_container: bool = False
    can_contain: FrozenSet[str] = frozenset()
    must_be_contained_by: FrozenSet[str] = frozenset()
    can_be_contained_by: FrozenSet[str] = frozenset()
    multi_placement: bool = False
    default_attributes: Mapping[str, Any] = field(default_factory=dict)
    size: Tuple[int, int] = (40, 40)
    template: Optional[Template] = None
    output: Optional[OutputSpec] = None
